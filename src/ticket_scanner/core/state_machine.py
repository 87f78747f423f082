"""Scan pipeline state machine (minimal FSM)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Set


class ScanState(str, Enum):
    IDLE = "idle"
    GATED = "gated"
    VALIDATING = "validating"
    GROUP_PENDING = "group-pending"
    RESOLVED = "resolved"


_ALLOWED: Dict[ScanState, Set[ScanState]] = {
    ScanState.IDLE: {ScanState.GATED},
    ScanState.GATED: {ScanState.IDLE, ScanState.VALIDATING},
    ScanState.VALIDATING: {ScanState.GROUP_PENDING, ScanState.RESOLVED, ScanState.IDLE},
    ScanState.GROUP_PENDING: {ScanState.IDLE},
    ScanState.RESOLVED: {ScanState.IDLE},
}


@dataclass
class ScanStateMachine:
    state: ScanState = ScanState.IDLE

    def can_transition(self, target: ScanState) -> bool:
        return target in _ALLOWED.get(self.state, set())

    def transition(self, target: ScanState) -> bool:
        if self.can_transition(target):
            self.state = target
            return True
        return False

    def reset(self) -> None:
        """Force ``IDLE``; used by fail-safes, acknowledgments and mode changes."""
        self.state = ScanState.IDLE
