"""Run reporting models — per-module status and the aggregate summary."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from forgeops.models.artifacts import (
    ManifestEntry,
    OutcomeKind,
    PackageArtifact,
    WriteOutcome,
)
from forgeops.models.states import ModuleState, TransitionRecord


class ModuleReport(BaseModel):
    """Everything the Orchestrator learned about one module.

    Mutable while the module runs; read-only once it reaches a terminal state.
    """

    name: str
    description: str = ""
    state: ModuleState = ModuleState.PENDING
    outcomes: list[WriteOutcome] = []
    manifest_path: Path | None = None
    manifest_entries: list[ManifestEntry] = []
    package: PackageArtifact | None = None
    warnings: list[str] = []
    error: str = ""
    transitions: list[TransitionRecord] = []

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for o in self.outcomes if o.kind == kind)

    @property
    def written_count(self) -> int:
        return self.count(OutcomeKind.WRITTEN)

    @property
    def skipped_count(self) -> int:
        return self.count(OutcomeKind.SKIPPED_EXISTING)

    @property
    def failed_count(self) -> int:
        return self.count(OutcomeKind.FAILED)

    @property
    def succeeded(self) -> bool:
        return self.state == ModuleState.DONE


class RunSummary(BaseModel):
    """Aggregate result of a bootstrap run."""

    base_dir: Path
    modules: list[ModuleReport] = []
    tree_outcomes: list[WriteOutcome] = []
    tree_manifest_path: Path | None = None
    tree_manifest_signature: Path | None = None
    tree_package: PackageArtifact | None = None
    warnings: list[str] = []
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    finished_at: datetime | None = None

    @property
    def failed_modules(self) -> list[ModuleReport]:
        return [m for m in self.modules if m.state == ModuleState.FAILED]

    @property
    def failed_tree_outcomes(self) -> list[WriteOutcome]:
        return [o for o in self.tree_outcomes if o.kind == OutcomeKind.FAILED]

    @property
    def succeeded(self) -> bool:
        if self.failed_modules or self.failed_tree_outcomes:
            return False
        return all(m.succeeded for m in self.modules)

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1
