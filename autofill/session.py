"""Automation session: the phase state machine one host screen drives."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .errors import InvalidTransitionError


class Phase(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    MATCHING = "matching"
    FILLING = "filling"
    UPLOADING_IMAGES = "uploadingImages"
    VERIFYING = "verifying"
    COMPLETE = "complete"
    FAILED = "failed"


PHASE_ORDER = (
    Phase.IDLE,
    Phase.INITIALIZING,
    Phase.MATCHING,
    Phase.FILLING,
    Phase.UPLOADING_IMAGES,
    Phase.VERIFYING,
    Phase.COMPLETE,
)

TERMINAL_PHASES = frozenset({Phase.COMPLETE, Phase.FAILED})

# Progress floor shown when a phase is entered.
PHASE_PROGRESS = {
    Phase.IDLE: 0.0,
    Phase.INITIALIZING: 0.05,
    Phase.MATCHING: 0.15,
    Phase.FILLING: 0.30,
    Phase.UPLOADING_IMAGES: 0.60,
    Phase.VERIFYING: 0.90,
    Phase.COMPLETE: 1.0,
}


@dataclass
class AutomationSession:
    phase: Phase = Phase.IDLE
    progress: float = 0.0
    started_at: Optional[datetime] = None
    last_message: str = ""
    failure_reason: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def is_active(self) -> bool:
        return self.phase is not Phase.IDLE and not self.is_terminal

    def can_transition(self, target: Phase) -> bool:
        if self.is_terminal:
            return False
        if target is Phase.FAILED:
            return True
        return PHASE_ORDER.index(target) > PHASE_ORDER.index(self.phase)

    def transition(self, target: Phase, reason: Optional[str] = None) -> None:
        if not self.can_transition(target):
            raise InvalidTransitionError(f"{self.phase.value} -> {target.value}")
        if target is Phase.INITIALIZING:
            self.started_at = datetime.now()
        if target is Phase.FAILED:
            self.failure_reason = reason or "Unknown failure"
            if reason:
                self.last_message = reason
        else:
            self.progress = max(self.progress, PHASE_PROGRESS[target])
        self.phase = target

    def next_floor(self) -> float:
        """Progress floor of the phase after the current one."""
        if self.is_terminal:
            return self.progress
        index = PHASE_ORDER.index(self.phase)
        return PHASE_PROGRESS[PHASE_ORDER[min(index + 1, len(PHASE_ORDER) - 1)]]

    def advance_progress(self, step: float) -> None:
        if not self.is_active:
            return
        ceiling = self.next_floor() - 0.01
        self.progress = max(self.progress, min(self.progress + step, ceiling))
