import dataclasses

from binhunter.analyzer import Analyzer
from binhunter.config import Settings
from binhunter.models import FailureKind, Result, Severity
from binhunter.registry import PluginRegistry, build_registry

from conftest import CLAMAV_RULES, STRINGS_RULES


class CrashingPlugin:
    def analyze(self, binary):
        raise RuntimeError("engine exploded")

    def get_id(self):
        return "crashy"

    def get_description(self):
        return "Always fails."

    def get_api_version(self):
        return 1


class FixedPlugin:
    def __init__(self, plugin_id, level):
        self.plugin_id = plugin_id
        self.level = level

    def analyze(self, binary):
        res = Result()
        res.set_level(self.level)
        res.set_summary(f"{self.plugin_id} summary")
        res.add_information(binary.path)
        return res

    def get_id(self):
        return self.plugin_id

    def get_description(self):
        return "Fixed."

    def get_api_version(self):
        return 1


def _registry(*plugins):
    registry = PluginRegistry(api_version=1)
    registry.populate(plugins)
    return registry


def test_crashing_plugin_does_not_stop_others(write_file):
    target = write_file("a.exe", b"MZ")
    analyzer = Analyzer(_registry(CrashingPlugin(), FixedPlugin("peid", Severity.SUSPICIOUS)))

    report = analyzer.analyze_file(target)

    assert [plugin_id for plugin_id, _ in report.results] == ["crashy", "peid"]
    crashed = report.results[0][1]
    assert crashed.failure is FailureKind.PLUGIN_CRASH
    assert "engine exploded" in crashed.error
    assert crashed.level is None
    assert report.max_level == Severity.SUSPICIOUS


def test_oversized_file_is_skipped(write_file):
    target = write_file("big.exe", b"x" * 32)
    settings = dataclasses.replace(Settings(), max_file_size=16)
    analyzer = Analyzer(_registry(FixedPlugin("peid", Severity.SUSPICIOUS)), settings)

    report = analyzer.analyze_file(target)

    assert report.results == []
    assert "limit" in report.error


def test_scan_ranks_and_filters(tmp_path, write_file):
    write_file("bin/a.exe", b"MZ")
    write_file("bin/notes.txt", "ignored by extension")
    write_file("bin/sub/b.dll", b"MZ")
    registry = _registry(
        FixedPlugin("compilers", Severity.NO_OPINION),
        FixedPlugin("peid", Severity.SUSPICIOUS),
    )

    summary = Analyzer(registry).scan([str(tmp_path / "bin")], min_level=Severity.SUSPICIOUS)

    assert summary.total_files == 2
    assert summary.total_findings == 2
    assert summary.severity_counts["SUSPICIOUS"] == 2
    assert summary.severity_counts["NO_OPINION"] == 0
    assert all([p for p, _ in r.results] == ["peid"] for r in summary.reports)
    assert summary.max_level == Severity.SUSPICIOUS


def test_scan_with_real_rules(tmp_path, write_file):
    rules_dir = tmp_path / "rules"
    write_file("rules/clamav.yara", CLAMAV_RULES)
    write_file("rules/suspicious_strings.yara", STRINGS_RULES)
    write_file("samples/clean.exe", b"MZ nothing here")
    write_file("samples/evil.exe", b"MZ hello from VMware")
    settings = Settings(rules_dir=str(rules_dir))
    registry = build_registry(settings).select(["clamav", "strings"])

    summary = Analyzer(registry, settings).scan([str(tmp_path / "samples")])

    assert summary.total_files == 2
    assert [r.file_path for r in summary.reports] == [str(tmp_path / "samples" / "evil.exe")]
    report = summary.reports[0]
    assert report.max_level == Severity.MALICIOUS
    assert list(dict(report.results)["strings"].information) == ["Anti-VM String(s) found:", "\tVMware"]
    assert summary.errors == 0


def test_missing_rules_are_counted_as_errors(tmp_path, write_file):
    write_file("samples/a.exe", b"MZ")
    settings = Settings(rules_dir=str(tmp_path / "no_rules"))

    summary = Analyzer(build_registry(settings), settings).scan([str(tmp_path / "samples")])

    assert summary.errors == 1
    assert summary.total_findings == 0
    report = summary.reports[0]
    assert len(report.errors) == 4
    assert all(r.failure is FailureKind.RULE_LOAD for _, r in report.results)
    assert report.max_level is None
