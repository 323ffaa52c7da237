"""
Probe Scan State Management

Transition table for the probe scan state machine and the record kept
for each scan attempt.

    IDLE -> SCANNING -> RETRACTING -> DONE
              |                        |
              +--(scan failed)-> IDLE  +--(trigger)-> SCANNING
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from botanybot.core.exceptions import InvalidScanTransitionError
from botanybot.core.types import ScanState, SoilMetrics


ALLOWED_TRANSITIONS: Dict[ScanState, FrozenSet[ScanState]] = {
    ScanState.IDLE: frozenset({ScanState.SCANNING}),
    ScanState.SCANNING: frozenset({ScanState.RETRACTING, ScanState.IDLE}),
    ScanState.RETRACTING: frozenset({ScanState.DONE}),
    ScanState.DONE: frozenset({ScanState.SCANNING}),
}

BUSY_STATES = frozenset({ScanState.SCANNING, ScanState.RETRACTING})


def can_transition(current: ScanState, target: ScanState) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def check_transition(current: ScanState, target: ScanState) -> None:
    if not can_transition(current, target):
        raise InvalidScanTransitionError(
            f"Cannot move probe scan from {current.value} to {target.value}",
            module="scanning"
        )


class ScanOutcome(Enum):
    """Result of one trigger() call"""
    COMPLETED = "completed"
    FAILED = "failed"
    REJECTED = "rejected"
    DISCARDED = "discarded"


@dataclass
class ScanAttempt:
    """Timing and result of one probe scan"""
    attempt_id: int
    started_at: datetime
    finished_at: Optional[datetime] = None
    outcome: Optional[ScanOutcome] = None
    metrics: Optional[SoilMetrics] = None
    error: Optional[str] = None

    def finish(self, outcome: ScanOutcome, error: Optional[str] = None):
        self.outcome = outcome
        self.error = error
        self.finished_at = datetime.now()

    @property
    def duration(self) -> float:
        """Seconds from trigger to completion (or until now)"""
        end = self.finished_at or datetime.now()
        return (end - self.started_at).total_seconds()
