import logging
from typing import Callable, Iterable

from .config import Settings
from .models import FailureKind, FileReport, Result, Sample, ScanSummary, Severity
from .registry import PluginRegistry
from .utils import check_file, discover_files

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


class Analyzer:
    """Orchestrator: discovery -> every registered plugin -> ranked summary."""

    def __init__(self, registry: PluginRegistry, settings: Settings | None = None):
        self.registry = registry
        self.settings = settings or Settings()

    def analyze_file(self, path: str) -> FileReport:
        report = FileReport(file_path=path)
        report.error = check_file(path, self.settings.max_file_size)
        if report.error:
            return report

        sample = Sample(path=path)
        for plugin in self.registry:
            plugin_id = plugin.get_id()
            try:
                result = plugin.analyze(sample)
            except Exception as e:
                logger.debug("Plugin %s failed on %s", plugin_id, path, exc_info=True)
                result = Result()
                result.set_error(FailureKind.PLUGIN_CRASH, f"{type(e).__name__}: {e}")
                result.freeze()
            report.results.append((plugin_id, result))
        return report

    def scan(
        self,
        paths: Iterable[str],
        progress_callback: ProgressCallback | None = None,
        min_level: Severity = Severity.NO_OPINION,
    ) -> ScanSummary:
        # Discover files
        all_files: list[str] = []
        for path in paths:
            all_files.extend(discover_files(path, self.settings.extensions))

        summary = ScanSummary(total_files=len(all_files))
        total = len(all_files)

        for idx, fpath in enumerate(all_files):
            if progress_callback:
                progress_callback(fpath, idx, total)

            report = self.analyze_file(fpath)

            # Keep findings at or above min_level, and every error
            report.results = [
                (plugin_id, r) for plugin_id, r in report.results
                if r.error or (r.level is not None and r.level >= min_level)
            ]

            if report.error or report.errors:
                summary.errors += 1
            if report.results or report.error:
                summary.reports.append(report)

        # Most severe files first; files with only errors last
        summary.reports.sort(
            key=lambda r: r.max_level if r.max_level is not None else 0,
            reverse=True,
        )

        for report in summary.reports:
            for _, result in report.findings:
                summary.total_findings += 1
                sev_name = result.level.name
                summary.severity_counts[sev_name] = summary.severity_counts.get(sev_name, 0) + 1

        return summary
