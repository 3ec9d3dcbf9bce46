"""Explicit per-run context threaded through every component call."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

PACKAGING_DIRNAME = "packaging"
LOGS_DIRNAME = "logs"
MANIFEST_FILENAME = "SHASUMS256.txt"
TREE_ARCHIVE_NAME = "forgeops_modules.tar.gz"


class RunContext(BaseModel):
    """Where to write, whether to overwrite, and where to log.

    Components receive the context instead of reading process-wide state.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_dir: Path
    overwrite: bool = False
    log: logging.Logger = Field(
        default_factory=lambda: logging.getLogger("forgeops.run")
    )

    @property
    def packaging_dir(self) -> Path:
        """Whole-tree output directory (archives, tree manifest, signatures)."""
        return self.base_dir / PACKAGING_DIRNAME

    @property
    def logs_dir(self) -> Path:
        return self.base_dir / LOGS_DIRNAME

    @property
    def tree_manifest_path(self) -> Path:
        return self.packaging_dir / MANIFEST_FILENAME

    @property
    def tree_archive_path(self) -> Path:
        return self.packaging_dir / TREE_ARCHIVE_NAME

    def module_dir(self, name: str) -> Path:
        return self.base_dir / name

    def module_manifest_path(self, name: str) -> Path:
        return self.module_dir(name) / PACKAGING_DIRNAME / MANIFEST_FILENAME

    def module_archive_path(self, name: str) -> Path:
        return self.packaging_dir / f"{name}.tar.gz"
