from dataclasses import FrozenInstanceError, dataclass, field
from enum import Enum, IntEnum
from typing import Protocol


class Severity(IntEnum):
    NO_OPINION = 1
    SUSPICIOUS = 2
    MALICIOUS = 3


class FailureKind(Enum):
    RULE_LOAD = "rule_load"
    ENGINE_SCAN = "engine_scan"
    PLUGIN_CRASH = "plugin_crash"


class Binary(Protocol):
    """Anything a detector can scan. Only the path is needed."""

    path: str


@dataclass(frozen=True)
class Sample:
    path: str


@dataclass(frozen=True)
class Match:
    """One rule hit returned by the rule engine."""

    rule: str
    metadata: dict[str, str] = field(default_factory=dict)
    found_strings: frozenset[str] = frozenset()

    def get(self, meta_field: str) -> str:
        """Return the requested meta field, or the rule name if the rule lacks it."""
        return self.metadata.get(meta_field, self.rule)

    def sorted_strings(self) -> list[str]:
        return sorted(self.found_strings)


@dataclass
class Result:
    """Findings of one detector against one binary.

    ``level`` stays ``None`` when nothing matched, which is distinct from a
    rule that matched at ``Severity.NO_OPINION``. A result that carries an
    ``error`` never carries a level.

    A result is filled in by one scan, then frozen before it is handed over:
    after freeze() every assignment raises and ``information`` is a tuple.
    """

    level: Severity | None = None
    summary: str | None = None
    information: list[str] | tuple[str, ...] = field(default_factory=list)
    error: str | None = None
    failure: FailureKind | None = None
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name, value):
        if getattr(self, "_frozen", False):
            raise FrozenInstanceError(f"cannot assign to field {name!r}")
        super().__setattr__(name, value)

    def freeze(self) -> "Result":
        self.information = tuple(self.information)
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def found(self) -> bool:
        return self.level is not None

    def set_level(self, level: Severity) -> None:
        if self.level is not None:
            raise ValueError("Result level is already set")
        self.level = level

    def set_summary(self, summary: str) -> None:
        if self.summary is not None:
            raise ValueError("Result summary is already set")
        self.summary = summary

    def add_information(self, line: str) -> None:
        if self._frozen:
            raise FrozenInstanceError("cannot add information to a frozen result")
        self.information.append(line)

    def set_error(self, failure: FailureKind, message: str) -> None:
        self.failure = failure
        self.error = message

    def to_dict(self) -> dict:
        return {
            "level": self.level.name if self.level is not None else None,
            "summary": self.summary,
            "information": list(self.information),
            "error": self.error,
            "failure": self.failure.value if self.failure is not None else None,
        }


@dataclass
class FileReport:
    file_path: str
    results: list[tuple[str, Result]] = field(default_factory=list)
    error: str | None = None

    @property
    def max_level(self) -> Severity | None:
        return max((r.level for _, r in self.results if r.level is not None), default=None)

    @property
    def errors(self) -> list[tuple[str, Result]]:
        return [(plugin_id, r) for plugin_id, r in self.results if r.error]

    @property
    def findings(self) -> list[tuple[str, Result]]:
        return [(plugin_id, r) for plugin_id, r in self.results if r.found]


@dataclass
class ScanSummary:
    total_files: int = 0
    total_findings: int = 0
    severity_counts: dict[str, int] = field(default_factory=lambda: {
        "MALICIOUS": 0, "SUSPICIOUS": 0, "NO_OPINION": 0,
    })
    duration_seconds: float = 0.0
    reports: list[FileReport] = field(default_factory=list)
    errors: int = 0

    @property
    def max_level(self) -> Severity | None:
        return max((r.max_level for r in self.reports if r.max_level is not None), default=None)
