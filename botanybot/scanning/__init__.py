"""
Probe Scan Orchestration

Sequences the soil probe scan and the dependent advisory call:
- Scan State: transition table and per-attempt records
- Probe Scan Coordinator: the state machine driving the workflow
"""

from .scan_state import (
    ALLOWED_TRANSITIONS,
    ScanAttempt,
    ScanOutcome,
    can_transition
)
from .probe_coordinator import ProbeScanCoordinator

__all__ = [
    'ALLOWED_TRANSITIONS',
    'ScanAttempt',
    'ScanOutcome',
    'can_transition',
    'ProbeScanCoordinator'
]
