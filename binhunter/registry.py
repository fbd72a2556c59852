"""Detector registration and lookup."""

import logging
from typing import Iterable, Iterator, Protocol

from .config import Settings
from .detectors import BUILTIN_DETECTORS, DetectorConfig, YaraDetector
from .errors import (
    ApiVersionMismatchError,
    DuplicateDetectorError,
    RegistrationError,
    UnknownDetectorError,
)
from .models import Binary, Result

logger = logging.getLogger(__name__)


class Detector(Protocol):
    """Contract every detector plugin implements."""

    def analyze(self, binary: Binary) -> Result: ...

    def get_id(self) -> str: ...

    def get_description(self) -> str: ...

    def get_api_version(self) -> int: ...


class PluginRegistry:
    """Detectors available to the host, keyed by id, in registration order."""

    def __init__(self, api_version: int):
        self.api_version = api_version
        self._plugins: dict[str, Detector] = {}

    def register(self, plugin: Detector) -> None:
        plugin_id = plugin.get_id()
        found = plugin.get_api_version()
        if found != self.api_version:
            raise ApiVersionMismatchError(plugin_id, found, self.api_version)
        if plugin_id in self._plugins:
            raise DuplicateDetectorError(plugin_id)
        self._plugins[plugin_id] = plugin

    def populate(self, plugins: Iterable[Detector]) -> list[RegistrationError]:
        """Register every plugin that can be registered; return the rejections."""
        rejected: list[RegistrationError] = []
        for plugin in plugins:
            try:
                self.register(plugin)
            except RegistrationError as e:
                logger.error("Rejected plugin: %s", e)
                rejected.append(e)
        return rejected

    def get(self, plugin_id: str) -> Detector:
        try:
            return self._plugins[plugin_id]
        except KeyError:
            raise UnknownDetectorError(plugin_id) from None

    def ids(self) -> list[str]:
        return list(self._plugins)

    def select(self, plugin_ids: Iterable[str]) -> "PluginRegistry":
        """Return a registry restricted to the given ids."""
        subset = PluginRegistry(self.api_version)
        for plugin_id in plugin_ids:
            plugin = self.get(plugin_id)
            if plugin_id not in subset:
                subset.register(plugin)
        return subset

    def __iter__(self) -> Iterator[Detector]:
        return iter(list(self._plugins.values()))

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._plugins


def create_detectors(settings: Settings, configs: Iterable[DetectorConfig] = BUILTIN_DETECTORS) -> list[YaraDetector]:
    return [YaraDetector(config, rule_path=settings.rule_path(config.rule_file)) for config in configs]


def build_registry(settings: Settings, configs: Iterable[DetectorConfig] = BUILTIN_DETECTORS) -> PluginRegistry:
    """Build the host's registry from detector configurations."""
    registry = PluginRegistry(settings.api_version)
    registry.populate(create_detectors(settings, configs))
    logger.debug("Registered plugins: %s", ", ".join(registry.ids()))
    return registry
