"""``forgeops manifest`` and ``forgeops verify`` — checksum manifests for any tree.

``verify`` is the ``sha256sum -c`` equivalent: it recomputes every digest
and reports files that are missing, changed, or not listed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from forgeops.cli.common import console, exit_on_error
from forgeops.core.errors import BootstrapError
from forgeops.core.manifest import (
    build_manifest,
    generate_manifest,
    render_manifest,
    verify_manifest,
)
from forgeops.models.context import LOGS_DIRNAME, MANIFEST_FILENAME, PACKAGING_DIRNAME


def _scope(exclude: Optional[list[str]], tree: bool) -> set[str]:
    scope = set(exclude or [])
    if tree:
        scope.update({PACKAGING_DIRNAME, LOGS_DIRNAME})
    return scope


def manifest_cmd(
    root: Path = typer.Argument(..., help="Directory to checksum."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-O", help="Write the manifest here instead of stdout."
    ),
    exclude: Optional[list[str]] = typer.Option(
        None, "--exclude", "-x", help="Relative path to leave out; repeatable."
    ),
    tree: bool = typer.Option(
        False, "--tree", help="Exclude packaging/ and logs/ (whole-tree scope)."
    ),
) -> None:
    """Print or write a SHA-256 manifest of ROOT."""
    scope = _scope(exclude, tree)
    try:
        if output is None:
            typer.echo(render_manifest(generate_manifest(root, scope)), nl=False)
            return
        entries = build_manifest(root, output, scope)
    except BootstrapError as exc:
        raise exit_on_error(exc) from exc
    console.print(f"Wrote {len(entries)} entries to {output}")


def verify_cmd(
    root: Path = typer.Argument(..., help="Directory the manifest describes."),
    manifest: Optional[Path] = typer.Option(
        None,
        "--manifest",
        "-M",
        help=f"Manifest to check (default: ROOT/{PACKAGING_DIRNAME}/{MANIFEST_FILENAME}).",
    ),
    exclude: Optional[list[str]] = typer.Option(
        None, "--exclude", "-x", help="Relative path to leave out; repeatable."
    ),
    tree: bool = typer.Option(
        False, "--tree", help="Exclude packaging/ and logs/ (whole-tree scope)."
    ),
) -> None:
    """Verify ROOT against a SHA-256 manifest."""
    manifest_path = manifest or root / PACKAGING_DIRNAME / MANIFEST_FILENAME
    try:
        result = verify_manifest(root, manifest_path, _scope(exclude, tree))
    except BootstrapError as exc:
        raise exit_on_error(exc) from exc
    except ValueError as exc:
        console.print(f"[bold red]Malformed manifest:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    for path in result.missing:
        console.print(f"[red]MISSING[/red]  {path}", highlight=False)
    for path in result.mismatched:
        console.print(f"[red]FAILED[/red]   {path}", highlight=False)
    for path in result.extra:
        console.print(f"[yellow]EXTRA[/yellow]    {path}", highlight=False)

    if not result.ok:
        console.print(
            f"[bold red]Verification failed[/bold red] "
            f"({len(result.missing)} missing, {len(result.mismatched)} changed, "
            f"{len(result.extra)} unlisted)"
        )
        raise typer.Exit(code=1)
    console.print(f"[bold green]OK[/bold green] {result.checked} file(s) verified")
