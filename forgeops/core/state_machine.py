"""Per-module lifecycle state machine.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- ``FAILED`` reachable from every non-terminal state
- Every transition logged and recorded as a ``TransitionRecord``
"""

from __future__ import annotations

import logging

from forgeops.models.states import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ModuleState,
    TransitionRecord,
)

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class ModuleStateMachine:
    """Tracks one module's state.

    Parameters
    ----------
    module:
        Module name, used in records and log lines.
    log:
        Logger that receives one INFO line per transition.
    """

    def __init__(self, module: str, log: logging.Logger | None = None) -> None:
        self.module = module
        self.state = ModuleState.PENDING
        self.history: list[TransitionRecord] = []
        self._log = log or logger

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def can_transition(self, target: ModuleState) -> bool:
        return target in VALID_TRANSITIONS.get(self.state, set())

    def transition(self, target: ModuleState, reason: str = "") -> TransitionRecord:
        """Move to *target*, recording and logging the change."""
        if not self.can_transition(target):
            allowed = sorted(s.value for s in VALID_TRANSITIONS.get(self.state, set()))
            raise InvalidTransitionError(
                f"Cannot transition {self.module} from {self.state.value} to "
                f"{target.value}. Allowed: {allowed}"
            )

        record = TransitionRecord(
            module=self.module,
            from_state=self.state,
            to_state=target,
            reason=reason,
        )
        self.history.append(record)
        self.state = target

        level = logging.ERROR if target == ModuleState.FAILED else logging.INFO
        if reason:
            self._log.log(
                level, "[%s] %s -> %s (%s)", self.module,
                record.from_state.value, target.value, reason,
            )
        else:
            self._log.log(
                level, "[%s] %s -> %s", self.module, record.from_state.value, target.value
            )
        return record

    def fail(self, reason: str) -> TransitionRecord | None:
        """Move to ``FAILED`` unless already terminal."""
        if self.is_terminal:
            return None
        return self.transition(ModuleState.FAILED, reason)
