"""Command-line entry point: scan files with every registered plugin."""

import argparse
import dataclasses
import logging
import sys
import time

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from . import __version__
from .analyzer import Analyzer
from .config import Settings
from .errors import UnknownDetectorError
from .models import ScanSummary, Severity
from .registry import PluginRegistry, build_registry
from .reporter import export_json, print_banner, print_plugins, print_results, print_summary

# Results go to stdout, banner/progress/status to stderr
stderr_console = Console(stderr=True)
stdout_console = Console()

SEVERITY_MAP = {level.name.lower(): level for level in Severity}

EXIT_CODES = {
    Severity.MALICIOUS: 2,
    Severity.SUSPICIOUS: 1,
}
EXIT_USAGE = 64
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="binhunter",
        description="Scan executables with YARA-based detector plugins.",
    )
    parser.add_argument("--path", nargs="+", default=["."],
                        help="Files or directories to scan (default: current directory)")
    parser.add_argument("--rules-dir",
                        help="Directory holding the plugins' YARA rule files "
                             "(default: $BINHUNTER_RULES_DIR or ./yara_rules)")
    parser.add_argument("--plugins", nargs="+", metavar="ID",
                        help="Only run these plugins (default: all)")
    parser.add_argument("--list-plugins", action="store_true",
                        help="List available plugins and exit")

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument("--ext", nargs="+",
                           help="File extensions to scan inside directories (default: common PE extensions)")
    selection.add_argument("--all-files", action="store_true",
                           help="Scan every file inside directories, whatever its extension")

    parser.add_argument("--json-output", metavar="FILE", help="Also write the report as JSON")
    parser.add_argument("--severity-level", choices=list(SEVERITY_MAP), default="no_opinion",
                        help="Lowest level to report (default: no_opinion)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show every finding line and debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if args.rules_dir:
        settings = dataclasses.replace(settings, rules_dir=args.rules_dir)
    if args.all_files:
        settings = dataclasses.replace(settings, extensions=None)
    elif args.ext:
        extensions = frozenset("." + e.lower().lstrip(".") for e in args.ext)
        settings = dataclasses.replace(settings, extensions=extensions)
    return settings


def scan_with_progress(analyzer: Analyzer, paths: list[str], min_level: Severity) -> ScanSummary:
    """Run the scan behind a transient progress bar on stderr."""
    columns = (
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
    )
    with Progress(*columns, console=stderr_console, transient=True) as progress:
        task_id = progress.add_task("Discovering files...", total=None)

        def advance(fpath: str, idx: int, total: int) -> None:
            progress.update(task_id, total=total, completed=idx + 1, description=fpath[-60:])

        start = time.monotonic()
        summary = analyzer.scan(paths, progress_callback=advance, min_level=min_level)
        summary.duration_seconds = time.monotonic() - start
    return summary


def exit_code(summary: ScanSummary) -> int:
    return EXIT_CODES.get(summary.max_level, 0)


def select_plugins(registry: PluginRegistry, plugin_ids: list[str] | None) -> PluginRegistry | None:
    if not plugin_ids:
        return registry
    try:
        return registry.select(plugin_ids)
    except UnknownDetectorError as e:
        stderr_console.print(f"[bold red]{e}[/bold red] (available: {', '.join(registry.ids())})")
        return None


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    settings = build_settings(args)
    registry = build_registry(settings)
    if args.list_plugins:
        print_plugins(stdout_console, registry)
        return 0

    registry = select_plugins(registry, args.plugins)
    if registry is None:
        return EXIT_USAGE

    print_banner(stderr_console)
    try:
        summary = scan_with_progress(Analyzer(registry, settings), args.path, SEVERITY_MAP[args.severity_level])
    except KeyboardInterrupt:
        stderr_console.print("\n[yellow]Scan interrupted.[/yellow]")
        return EXIT_INTERRUPTED

    print_results(stdout_console, summary, verbose=args.verbose)
    print_summary(stdout_console, summary)
    if args.json_output:
        export_json(summary, args.json_output)
        stderr_console.print(f"\n[green]Results exported to {args.json_output}[/green]")
    return exit_code(summary)


def main(argv: list[str] | None = None) -> None:
    sys.exit(run(argv))


if __name__ == "__main__":
    main()
