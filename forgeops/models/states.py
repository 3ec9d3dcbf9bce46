"""Per-module lifecycle states and the transition table."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ModuleState(str, Enum):
    """Where a module is in the bootstrap lifecycle."""

    PENDING = "pending"
    SCAFFOLDING = "scaffolding"
    MANIFESTING = "manifesting"
    PACKAGING = "packaging"
    SIGNED = "signed"
    UNSIGNED = "unsigned"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES: frozenset[ModuleState] = frozenset({ModuleState.DONE, ModuleState.FAILED})

# FAILED is reachable from every non-terminal state; DONE and FAILED are terminal.
VALID_TRANSITIONS: dict[ModuleState, set[ModuleState]] = {
    ModuleState.PENDING: {ModuleState.SCAFFOLDING, ModuleState.FAILED},
    ModuleState.SCAFFOLDING: {ModuleState.MANIFESTING, ModuleState.FAILED},
    ModuleState.MANIFESTING: {ModuleState.PACKAGING, ModuleState.FAILED},
    ModuleState.PACKAGING: {ModuleState.SIGNED, ModuleState.UNSIGNED, ModuleState.FAILED},
    ModuleState.SIGNED: {ModuleState.DONE, ModuleState.FAILED},
    ModuleState.UNSIGNED: {ModuleState.DONE, ModuleState.FAILED},
    ModuleState.DONE: set(),
    ModuleState.FAILED: set(),
}


class TransitionRecord(BaseModel):
    """Audit record of a single state change."""

    model_config = ConfigDict(frozen=True)

    module: str
    from_state: ModuleState
    to_state: ModuleState
    reason: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
