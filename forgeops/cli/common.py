"""Helpers shared by CLI commands."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console

from forgeops.config import BootstrapSettings, load_settings
from forgeops.core.errors import BootstrapError, ConfigError
from forgeops.core.registry import ModuleRegistry

console = Console()


def resolve_settings(**overrides: Any) -> BootstrapSettings:
    """Environment settings with CLI *overrides*; invalid values are a ``ConfigError``."""
    try:
        return load_settings(**overrides)
    except ValidationError as exc:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid settings: {messages}") from exc


def build_registry(
    modules: Sequence[str] | None = None,
    modules_file: Path | None = None,
    only: Sequence[str] | None = None,
) -> ModuleRegistry:
    """``--module`` entries win over a modules file, which wins over the built-ins."""
    if modules:
        registry = ModuleRegistry.from_strings(modules)
    elif modules_file is not None:
        registry = ModuleRegistry.from_file(modules_file)
    else:
        registry = ModuleRegistry.default()
    if only:
        registry = registry.select(only)
    return registry


def exit_on_error(exc: BootstrapError) -> typer.Exit:
    """Print *exc* and return the ``typer.Exit`` carrying its exit code."""
    console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}", markup=True, highlight=False)
    return typer.Exit(code=exc.exit_code)
