"""Artifact models — what gets written, what happened, and what was produced."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ArtifactSpec(BaseModel):
    """One rendered file, relative to its module (or tree) root."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    content: bytes
    executable: bool = False

    @property
    def mode(self) -> int:
        return 0o755 if self.executable else 0o644


class OutcomeKind(str, Enum):
    """Tag of a ``WriteOutcome``."""

    WRITTEN = "written"
    SKIPPED_EXISTING = "skipped_existing"
    FAILED = "failed"


class WriteOutcome(BaseModel):
    """Result of writing a single artifact."""

    model_config = ConfigDict(frozen=True)

    path: Path
    kind: OutcomeKind
    reason: str = ""

    @classmethod
    def written(cls, path: Path) -> WriteOutcome:
        return cls(path=path, kind=OutcomeKind.WRITTEN)

    @classmethod
    def skipped(cls, path: Path) -> WriteOutcome:
        return cls(path=path, kind=OutcomeKind.SKIPPED_EXISTING)

    @classmethod
    def failed(cls, path: Path, reason: str) -> WriteOutcome:
        return cls(path=path, kind=OutcomeKind.FAILED, reason=reason)

    @property
    def ok(self) -> bool:
        return self.kind != OutcomeKind.FAILED


class ManifestEntry(BaseModel):
    """A single ``digest  path`` record of a checksum manifest."""

    model_config = ConfigDict(frozen=True)

    relative_path: str  # POSIX separators, relative to the manifest root
    digest: str  # SHA-256 hex
    size: int

    def to_line(self) -> str:
        return f"{self.digest}  {self.relative_path}"


class PackageArtifact(BaseModel):
    """An archive built from a fully-written directory tree."""

    model_config = ConfigDict(frozen=True)

    source_dir: Path
    archive_path: Path
    file_count: int = 0
    digest: str = ""
    signature_path: Path | None = None

    @property
    def signed(self) -> bool:
        return self.signature_path is not None
