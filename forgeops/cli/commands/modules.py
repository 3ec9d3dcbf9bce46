"""``forgeops modules`` — list the modules a bootstrap run would generate."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from forgeops.cli.common import build_registry, console, exit_on_error, resolve_settings
from forgeops.core.errors import BootstrapError


def modules_cmd(
    modules_file: Optional[Path] = typer.Option(
        None,
        "--modules-file",
        help="File of NAME:DESCRIPTION lines replacing the built-in set.",
    ),
) -> None:
    """List the module registry."""
    try:
        settings = resolve_settings(modules_file=modules_file)
        registry = build_registry(modules_file=settings.modules_file)
    except BootstrapError as exc:
        raise exit_on_error(exc) from exc

    table = Table(title=f"Modules ({len(registry)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Service class", style="dim")
    for index, module in enumerate(registry, start=1):
        table.add_row(
            str(index), module.name, module.description, f"{module.class_name}Service"
        )
    console.print(table)
