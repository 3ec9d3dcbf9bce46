"""Rich terminal rendering of a bootstrap ``RunSummary``.

Color scheme
------------
- green     : DONE
- red       : FAILED
- yellow    : in progress (should not appear in a finished run)
"""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from forgeops.core.writer import atomic_write, ensure_directory
from forgeops.models.reports import ModuleReport, RunSummary
from forgeops.models.states import ModuleState

_STATE_STYLES: dict[ModuleState, str] = {
    ModuleState.DONE: "bold green",
    ModuleState.FAILED: "bold red",
}


def _signature_cell(report: ModuleReport) -> str:
    if report.package is None:
        return "[dim]-[/dim]"
    if report.package.signed:
        return "[green]signed[/green]"
    return "[dim]unsigned[/dim]"


class SummaryRenderer:
    """Renders a ``RunSummary`` as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def build_table(self, summary: RunSummary) -> Table:
        table = Table(title="Module Summary", show_lines=False)
        table.add_column("Module", style="cyan", no_wrap=True)
        table.add_column("State", justify="center")
        table.add_column("Written", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Files", justify="right")
        table.add_column("Signature", justify="center")
        table.add_column("Notes")

        for report in summary.modules:
            style = _STATE_STYLES.get(report.state, "bold yellow")
            state = Text(report.state.value.upper(), style=style)
            files = str(report.package.file_count) if report.package else "-"
            notes = report.error or "; ".join(report.warnings)
            table.add_row(
                report.name,
                state,
                str(report.written_count),
                str(report.skipped_count),
                str(report.failed_count),
                files,
                _signature_cell(report),
                Text(notes),
            )
        return table

    def render_summary(self, summary: RunSummary) -> Panel:
        parts: list[str] = [
            f"[bold]Base:[/bold] {escape(str(summary.base_dir))}",
            f"[bold]Modules:[/bold] {len(summary.modules) - len(summary.failed_modules)}"
            f"/{len(summary.modules)} done",
        ]
        if summary.tree_package is not None:
            parts.append(f"[bold]Archive:[/bold] {escape(str(summary.tree_package.archive_path))}")
        if summary.tree_manifest_path is not None:
            parts.append(f"[bold]Manifest:[/bold] {escape(str(summary.tree_manifest_path))}")
        status = (
            "[green]success[/green]"
            if summary.succeeded
            else f"[bold red]exit {summary.exit_code}[/bold red]"
        )
        parts.append(f"[bold]Status:[/bold] {status}")

        body: list[Table | Text] = [self.build_table(summary), Text("")]
        body.append(Text.from_markup("  |  ".join(parts)))
        for warning in summary.warnings:
            body.append(Text(f"warning: {warning}", style="yellow"))

        return Panel(
            Group(*body),
            title="[bold]ForgeOps Bootstrap[/bold]",
            border_style="green" if summary.succeeded else "red",
        )

    def print_summary(self, summary: RunSummary) -> None:
        self.console.print(self.render_summary(summary))


def write_report(summary: RunSummary, path: Path) -> Path:
    """Write *summary* as indented JSON to *path* (atomically)."""
    path = Path(path)
    ensure_directory(path.parent)
    payload = summary.model_dump(mode="json")
    payload["exit_code"] = summary.exit_code
    text = json.dumps(payload, indent=2, sort_keys=True) + "\n"
    atomic_write(path, text.encode("utf-8"), 0o644)
    return path
