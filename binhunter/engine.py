import logging
import string

import yara

from .errors import EngineScanError, RulesNotLoadedError
from .models import Match

logger = logging.getLogger(__name__)

# Line breaks excluded: each found string is rendered on one information line
_PRINTABLE = frozenset(string.printable.encode("ascii")) - frozenset(b"\n\r\x0b\x0c")


def _is_wide(data: bytes) -> bool:
    return (
        len(data) >= 2
        and len(data) % 2 == 0
        and not any(data[1::2])
        and all(b in _PRINTABLE for b in data[::2])
    )


def render_matched_data(data: bytes) -> str:
    """Render matched bytes as the text they encode.

    ASCII and UTF-16LE ("wide") text come back as text, anything else as a
    YARA-style hex string.
    """
    if _is_wide(data):
        return data.decode("utf-16-le")
    if data and all(b in _PRINTABLE for b in data):
        return data.decode("ascii")
    return "{ " + " ".join(f"{b:02X}" for b in data) + " }"


def _found_strings(string_match: "yara.StringMatch") -> list[str]:
    # One entry per distinct text: ascii/wide encodings and nocase spellings
    # of the same pattern collapse onto the first occurrence.
    found: dict[str, str] = {}
    for instance in string_match.instances:
        text = render_matched_data(instance.plaintext())
        found.setdefault(text.casefold(), text)
    return list(found.values())


def _to_match(raw: "yara.Match") -> Match:
    found: set[str] = set()
    for string_match in raw.strings:
        found.update(_found_strings(string_match))
    return Match(
        rule=raw.rule,
        metadata={str(k): str(v) for k, v in raw.meta.items()},
        found_strings=frozenset(found),
    )


class RuleEngine:
    """Holds one compiled YARA rule-set and scans files against it."""

    def __init__(self):
        self._rules: yara.Rules | None = None
        self._rule_file: str | None = None
        self._failed_file: str | None = None

    @property
    def loaded(self) -> bool:
        return self._rules is not None

    @property
    def rule_file(self) -> str | None:
        return self._rule_file

    def load_rules(self, path: str) -> bool:
        """Load a precompiled rule-set, or compile it from source.

        Replaces whatever was loaded before. Returns False on failure; a failed
        reload leaves the engine without rules.
        """
        self._rules = None
        self._rule_file = None
        try:
            rules = yara.load(filepath=path)
        except (yara.Error, OSError):
            try:
                rules = yara.compile(filepath=path)
            except (yara.Error, OSError) as e:
                # Repeated failures for the same file go to DEBUG
                log = logger.debug if path == self._failed_file else logger.error
                log("Could not load %s: %s", path, e)
                self._failed_file = path
                return False
        self._failed_file = None
        self._rules = rules
        self._rule_file = path
        logger.debug("Loaded YARA rules from %s", path)
        return True

    def scan_file(self, path: str) -> list[Match]:
        if self._rules is None:
            raise RulesNotLoadedError("No YARA rules loaded")
        try:
            raw_matches = self._rules.match(filepath=path)
        except (yara.Error, OSError) as e:
            raise EngineScanError(path, str(e)) from e
        return [_to_match(m) for m in raw_matches]
