"""Shared fixtures: YARA rule files and sample binaries written to tmp_path."""

from pathlib import Path

import pytest

from binhunter.models import Match

CLAMAV_RULES = """
rule Test_Signature
{
    meta:
        signature = "Test.Signature"
    strings:
        $a = "hello"
    condition:
        $a
}
"""

STRINGS_RULES = """
rule Anti_VM
{
    meta:
        description = "Anti-VM"
    strings:
        $vmware = "VMware"
        $vbox = "VBox"
    condition:
        any of them
}
"""

BROKEN_RULES = """
rule Broken
{
    strings:
        $a = "unterminated
    condition:
        $a
}
"""


@pytest.fixture
def write_file(tmp_path: Path):
    def _write(name: str, content: str | bytes) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return str(path)

    return _write


class FakeEngine:
    """Stand-in for RuleEngine returning canned matches."""

    def __init__(self, matches: list[Match] | None = None, load_ok: bool = True, scan_error: Exception | None = None):
        self.matches = matches or []
        self.load_ok = load_ok
        self.scan_error = scan_error
        self.load_calls: list[str] = []
        self.scanned: list[str] = []
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load_rules(self, path: str) -> bool:
        self.load_calls.append(path)
        self._loaded = self.load_ok
        return self.load_ok

    def scan_file(self, path: str) -> list[Match]:
        self.scanned.append(path)
        if self.scan_error is not None:
            raise self.scan_error
        return list(self.matches)


@pytest.fixture
def fake_engine():
    return FakeEngine
