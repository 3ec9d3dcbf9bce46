"""Bootstrap configuration — env-driven.

The three historical variables keep their bare names (``BASE_DIR``,
``FORCE``, ``GPG_SIGN``); everything else is read from ``FORGEOPS_*``
environment variables or a ``.env`` file.

Examples
--------
::

    BASE_DIR=/srv/forgeops FORCE=1 forgeops bootstrap
    GPG_SIGN=1 FORGEOPS_SIGNING_BACKEND=ed25519 \\
        FORGEOPS_SIGNING_KEY=$(cat seed.hex) forgeops bootstrap
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from forgeops.models.context import RunContext

SigningBackend = Literal["auto", "gpg", "ed25519"]


class BootstrapSettings(BaseSettings):
    """Settings for one bootstrap run.

    CLI options override these; the resolved values become a
    :class:`~forgeops.models.context.RunContext` via :meth:`to_context`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FORGEOPS_",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    # Historical, unprefixed
    base_dir: Path = Field(
        default=Path("./ForgeOpsModules"),
        validation_alias=AliasChoices("BASE_DIR", "base_dir"),
    )
    force: bool = Field(default=False, validation_alias=AliasChoices("FORCE", "force"))
    gpg_sign: bool = Field(
        default=False, validation_alias=AliasChoices("GPG_SIGN", "gpg_sign")
    )

    # FORGEOPS_*
    log_level: str = "INFO"
    signing_backend: SigningBackend = "auto"
    signing_key: str = ""
    build_services: bool = False
    required_tools: Annotated[list[str], NoDecode] = []
    command_timeout: float | None = None
    modules_file: Path | None = None

    @field_validator("force", "gpg_sign", "build_services", mode="before")
    @classmethod
    def _blank_is_false(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return False
        return value

    @field_validator("required_tools", mode="before")
    @classmethod
    def _split_tools(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [t for t in value.replace(",", " ").split() if t]
        return value

    @field_validator("command_timeout", mode="before")
    @classmethod
    def _blank_timeout(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level {value!r}")
        return level

    def to_context(self) -> RunContext:
        return RunContext(base_dir=self.base_dir, overwrite=self.force)


def load_settings(**overrides: Any) -> BootstrapSettings:
    """Read settings from the environment, then apply non-``None`` *overrides*."""
    return BootstrapSettings(**{k: v for k, v in overrides.items() if v is not None})
