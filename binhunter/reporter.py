import json
from datetime import datetime, timezone

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .models import FileReport, ScanSummary, Severity
from .registry import PluginRegistry

SEVERITY_COLORS = {
    Severity.MALICIOUS: "bold red",
    Severity.SUSPICIOUS: "yellow",
    Severity.NO_OPINION: "cyan",
}


def print_banner(console: Console) -> None:
    banner = (
        "[bold cyan]BinHunter[/bold cyan] v" + __version__ + "\n"
        "[dim]YARA-based Executable Analysis[/dim]"
    )
    console.print(Panel(banner, border_style="cyan", expand=False))


def print_plugins(console: Console, registry: PluginRegistry) -> None:
    table = Table(title="Available plugins", show_header=True, header_style="bold")
    table.add_column("Id", style="bold")
    table.add_column("Description")
    for plugin in registry:
        table.add_row(plugin.get_id(), plugin.get_description())
    console.print(table)


def print_results(console: Console, summary: ScanSummary, verbose: bool = False) -> None:
    if not summary.reports:
        console.print("\n[green]Nothing to report.[/green]")
        return

    console.print(f"\n[bold]Found {summary.total_findings} findings in {len(summary.reports)} files:[/bold]\n")

    for report in summary.reports:
        _print_file_report(console, report, verbose)


def _print_file_report(console: Console, report: FileReport, verbose: bool) -> None:
    color = SEVERITY_COLORS.get(report.max_level, "white")
    console.print(f"[{color}]{escape(report.file_path)}[/{color}]")

    if report.error:
        console.print(f"  [red]{escape(report.error)}[/red]\n")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("Plugin", style="dim", width=10)
    table.add_column("Level", width=11)
    table.add_column("Findings")

    for plugin_id, result in report.results:
        if result.error:
            table.add_row(plugin_id, "[red]ERROR[/red]", escape(result.error))
            continue
        sev_color = SEVERITY_COLORS.get(result.level, "white")
        lines = [escape(result.summary or "")]
        info = result.information if verbose else result.information[:5]
        lines.extend("  " + escape(line.replace("\t", "  ")) for line in info)
        if len(info) < len(result.information):
            lines.append(f"  [dim]... {len(result.information) - len(info)} more (use -v)[/dim]")
        table.add_row(plugin_id, f"[{sev_color}]{result.level.name}[/{sev_color}]", "\n".join(lines))

    console.print(table)
    console.print()


def print_summary(console: Console, summary: ScanSummary) -> None:
    table = Table(title="Scan Summary", show_header=False, border_style="dim")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Files scanned", str(summary.total_files))
    table.add_row("Total findings", str(summary.total_findings))
    table.add_row(
        "Malicious",
        f"[bold red]{summary.severity_counts.get('MALICIOUS', 0)}[/bold red]",
    )
    table.add_row(
        "Suspicious",
        f"[yellow]{summary.severity_counts.get('SUSPICIOUS', 0)}[/yellow]",
    )
    table.add_row(
        "No opinion",
        f"[cyan]{summary.severity_counts.get('NO_OPINION', 0)}[/cyan]",
    )
    table.add_row("Scan duration", f"{summary.duration_seconds:.2f}s")
    if summary.errors:
        table.add_row("Errors", f"[red]{summary.errors}[/red]")

    console.print()
    console.print(table)


def export_json(summary: ScanSummary, output_path: str) -> None:
    data = {
        "version": __version__,
        "scan_time": datetime.now(timezone.utc).isoformat(),
        "total_files": summary.total_files,
        "total_findings": summary.total_findings,
        "severity_counts": summary.severity_counts,
        "duration_seconds": round(summary.duration_seconds, 2),
        "errors": summary.errors,
        "results": [
            {
                "file": r.file_path,
                "level": r.max_level.name if r.max_level is not None else None,
                "error": r.error,
                "plugins": {plugin_id: result.to_dict() for plugin_id, result in r.results},
            }
            for r in summary.reports
        ],
    }
    with open(output_path, "w") as fp:
        json.dump(data, fp, indent=2)
