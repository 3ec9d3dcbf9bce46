"""ForgeOps data models — Pydantic v2; descriptors and records are frozen."""

from forgeops.models.artifacts import (
    ArtifactSpec,
    ManifestEntry,
    OutcomeKind,
    PackageArtifact,
    WriteOutcome,
)
from forgeops.models.context import RunContext
from forgeops.models.modules import ModuleDescriptor
from forgeops.models.reports import ModuleReport, RunSummary
from forgeops.models.states import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ModuleState,
    TransitionRecord,
)

__all__ = [
    # modules
    "ModuleDescriptor",
    # artifacts
    "ArtifactSpec",
    "ManifestEntry",
    "OutcomeKind",
    "PackageArtifact",
    "WriteOutcome",
    # states
    "ModuleState",
    "TransitionRecord",
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    # context
    "RunContext",
    # reports
    "ModuleReport",
    "RunSummary",
]
