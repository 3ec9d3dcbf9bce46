"""``forgeops bootstrap`` — generate, manifest, package and sign every module.

Settings come from the environment (``BASE_DIR``, ``FORCE``, ``GPG_SIGN``,
``FORGEOPS_*``); options given on the command line win.  Pre-flight checks
run before anything is written.  The exit status is 0 when every module
reached DONE, 1 when any module failed, and the error's own code for a
fatal error.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from forgeops.cli.common import build_registry, console, exit_on_error, resolve_settings
from forgeops.core.capabilities import resolve_capabilities
from forgeops.core.errors import BootstrapError
from forgeops.core.orchestrator import BootstrapOrchestrator
from forgeops.logs import configure_logging, reset_logging
from forgeops.report.renderer import SummaryRenderer, write_report


def bootstrap_cmd(
    base_dir: Optional[Path] = typer.Option(
        None,
        "--base-dir",
        "-b",
        help="Output root (overrides BASE_DIR).",
    ),
    force: Optional[bool] = typer.Option(
        None,
        "--force/--no-force",
        help="Overwrite existing files (overrides FORCE).",
    ),
    sign: Optional[bool] = typer.Option(
        None,
        "--sign/--no-sign",
        help="Write detached signatures (overrides GPG_SIGN).",
    ),
    module: Optional[list[str]] = typer.Option(
        None,
        "--module",
        "-m",
        help="Module as NAME:DESCRIPTION; repeat to replace the built-in set.",
    ),
    modules_file: Optional[Path] = typer.Option(
        None,
        "--modules-file",
        help="File of NAME:DESCRIPTION lines replacing the built-in set.",
    ),
    only: Optional[list[str]] = typer.Option(
        None,
        "--only",
        "-o",
        help="Restrict the run to this module; repeatable.",
    ),
    report: Optional[Path] = typer.Option(
        None,
        "--report",
        help="Write the run summary as JSON to this path.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Console and file log level (overrides FORGEOPS_LOG_LEVEL).",
    ),
) -> None:
    """Bootstrap the ForgeOps module tree."""
    try:
        settings = resolve_settings(
            base_dir=base_dir,
            force=force,
            gpg_sign=sign,
            log_level=log_level,
            modules_file=modules_file,
        )
        registry = build_registry(module, settings.modules_file, only)

        # Console only until pre-flight passes: nothing is written before that.
        configure_logging(settings.log_level)
        capabilities = resolve_capabilities(settings)

        context = settings.to_context()
        log_path = configure_logging(settings.log_level, context.logs_dir)
        context.log.info("Run log: %s", log_path)

        summary = BootstrapOrchestrator(context, registry, capabilities).run()
    except BootstrapError as exc:
        raise exit_on_error(exc) from exc
    finally:
        reset_logging()

    SummaryRenderer(console=console).print_summary(summary)
    if report is not None:
        try:
            write_report(summary, report)
        except BootstrapError as exc:
            raise exit_on_error(exc) from exc
        console.print(f"Report written to {report}")

    raise typer.Exit(code=summary.exit_code)
