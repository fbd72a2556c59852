import logging
import threading
from dataclasses import dataclass

from .config import API_VERSION
from .engine import RuleEngine
from .errors import EngineScanError
from .models import Binary, FailureKind, Result, Severity

logger = logging.getLogger(__name__)


def scan(
    binary: Binary,
    engine: RuleEngine,
    rule_file: str,
    summary: str,
    level: Severity,
    meta_field: str,
    show_strings: bool = False,
) -> Result:
    """Scan a binary with a YARA rule-set and turn the matches into a Result.

    :param binary: The binary to scan; only its ``path`` is used.
    :param engine: The engine holding (or about to hold) the rule-set.
    :param rule_file: Rule-set to load if the engine has none yet.
    :param summary: The summary to set if there is a match.
    :param level: The severity to set if there is a match.
    :param meta_field: The meta field of the matching rules reported for each match.
    :param show_strings: Also list the strings each rule matched.
    """
    res = Result()
    if not engine.loaded and not engine.load_rules(rule_file):
        res.set_error(FailureKind.RULE_LOAD, f"Could not load {rule_file}")
        return res.freeze()

    try:
        matches = engine.scan_file(binary.path)
    except EngineScanError as e:
        logger.warning("%s", e)
        res.set_error(FailureKind.ENGINE_SCAN, str(e))
        return res.freeze()

    if not matches:
        return res.freeze()

    res.set_level(level)
    res.set_summary(summary)
    for m in matches:
        if not show_strings:
            res.add_information(m.get(meta_field))
            continue
        res.add_information(f"{m.get(meta_field)} String(s) found:")
        for found in m.sorted_strings():
            res.add_information("\t" + found)
    return res.freeze()


@dataclass(frozen=True)
class DetectorConfig:
    id: str
    description: str
    rule_file: str
    summary: str
    level: Severity
    meta_field: str
    show_strings: bool = False


BUILTIN_DETECTORS: tuple[DetectorConfig, ...] = (
    DetectorConfig(
        id="clamav",
        description="Scans the binary with ClamAV virus definitions.",
        rule_file="clamav.yara",
        summary="Matching ClamAV signature(s):",
        level=Severity.MALICIOUS,
        meta_field="signature",
    ),
    DetectorConfig(
        id="compilers",
        description="Tries to determine which compiler generated the binary.",
        rule_file="compilers.yara",
        summary="Matching compiler(s):",
        level=Severity.NO_OPINION,
        meta_field="description",
    ),
    DetectorConfig(
        id="peid",
        description="Returns the PEiD signature of the binary.",
        rule_file="peid.yara",
        summary="PEiD Signature:",
        level=Severity.SUSPICIOUS,
        meta_field="packer_name",
    ),
    DetectorConfig(
        id="strings",
        description="Looks for suspicious strings (anti-VM, process names...).",
        rule_file="suspicious_strings.yara",
        summary="Strings found in the binary may indicate undesirable behavior:",
        level=Severity.SUSPICIOUS,
        meta_field="description",
        show_strings=True,
    ),
)


class YaraDetector:
    """A detector plugin driven entirely by its DetectorConfig.

    The rule-set is loaded on the first call to analyze() and kept for the
    lifetime of the detector. Concurrent analyze() calls are safe once it is
    loaded; reload() is serialised against the initial load but not against
    scans already in flight.
    """

    def __init__(self, config: DetectorConfig, rule_path: str | None = None, engine: RuleEngine | None = None):
        self.config = config
        self.rule_path = rule_path or config.rule_file
        self._engine = engine or RuleEngine()
        self._lock = threading.Lock()

    def analyze(self, binary: Binary) -> Result:
        if self._engine.loaded:
            return self._scan(binary)
        with self._lock:
            return self._scan(binary)

    def _scan(self, binary: Binary) -> Result:
        return scan(
            binary,
            self._engine,
            self.rule_path,
            self.config.summary,
            self.config.level,
            self.config.meta_field,
            self.config.show_strings,
        )

    def reload(self) -> bool:
        with self._lock:
            return self._engine.load_rules(self.rule_path)

    def get_id(self) -> str:
        return self.config.id

    def get_description(self) -> str:
        return self.config.description

    def get_api_version(self) -> int:
        return API_VERSION

    def __repr__(self) -> str:
        return f"YaraDetector({self.config.id!r}, rule_path={self.rule_path!r})"
