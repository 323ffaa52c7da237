"""
Probe Scan Coordinator

Runs the soil probe workflow against the robot state:

1. trigger: clear the previous advisory, enter SCANNING
2. probe scan succeeds: store metrics as last_metrics, enter RETRACTING
3. advisory resolves: store the advisory text, enter DONE
   probe scan fails: back to IDLE, previous metrics untouched

Only one scan can be in flight; triggering while SCANNING or RETRACTING
is a no-op. In-flight calls are never cancelled by the coordinator; a trigger
cancelled while RETRACTING still ends in DONE. After close(), results
that arrive late are dropped without touching the state.
"""

import asyncio
import logging
from collections import deque
from datetime import datetime
from typing import Deque, List, Optional

from botanybot.actuation.base import ActuatorGateway
from botanybot.advisory.base import ANALYSIS_UNAVAILABLE, SoilAdvisoryProvider
from botanybot.core.events import EventBus, EventConstants, EventPriority
from botanybot.core.types import RobotState, ScanState, SoilMetrics

from .scan_state import BUSY_STATES, ScanAttempt, ScanOutcome, check_transition

logger = logging.getLogger(__name__)


class ProbeScanCoordinator:
    """
    State machine sequencing probe scan and soil advisory

    The coordinator is the only writer of scan_state, last_metrics and
    advisory_text on the shared RobotState.
    """

    def __init__(self, gateway: ActuatorGateway, advisor: SoilAdvisoryProvider,
                 state: RobotState, event_bus: Optional[EventBus] = None,
                 history_size: int = 20):
        self.gateway = gateway
        self.advisor = advisor
        self.state = state
        self.event_bus = event_bus
        self._attempts: Deque[ScanAttempt] = deque(maxlen=history_size)
        self._attempt_counter = 0
        self._closed = False

    @property
    def scan_state(self) -> ScanState:
        return self.state.scan_state

    @property
    def is_busy(self) -> bool:
        return self.state.scan_state in BUSY_STATES

    @property
    def attempts(self) -> List[ScanAttempt]:
        return list(self._attempts)

    def close(self) -> None:
        """Stop accepting triggers and drop results that arrive later"""
        self._closed = True

    async def trigger(self) -> ScanOutcome:
        """
        Run one probe scan and advisory

        Returns:
            COMPLETED, FAILED, REJECTED (busy or closed) or DISCARDED
            (closed while the scan was in flight)
        """
        if self._closed or self.is_busy:
            logger.info(f"Probe scan trigger ignored (state {self.state.scan_state.value}, "
                        f"closed={self._closed})")
            self._publish(EventConstants.SCAN_REJECTED, {'state': self.state.scan_state.value})
            return ScanOutcome.REJECTED

        self._attempt_counter += 1
        attempt = ScanAttempt(attempt_id=self._attempt_counter, started_at=datetime.now())
        self._attempts.append(attempt)

        self.state.advisory_text = None
        self._transition(ScanState.SCANNING)
        self._publish(EventConstants.SCAN_STARTED, {'attempt_id': attempt.attempt_id})
        logger.info(f"Probe scan #{attempt.attempt_id} started")

        try:
            metrics = await self.gateway.perform_probe_scan()
        except asyncio.CancelledError:
            if not self._closed:
                self._fail(attempt, "cancelled")
            raise
        except Exception as e:
            if self._closed:
                return self._discard(attempt)
            self._fail(attempt, str(e))
            return ScanOutcome.FAILED

        if self._closed:
            return self._discard(attempt)

        attempt.metrics = metrics
        self.state.last_metrics = metrics
        self._transition(ScanState.RETRACTING)
        self._publish(EventConstants.SCAN_COMPLETED, {
            'attempt_id': attempt.attempt_id,
            'metrics': metrics.to_dict()
        })
        logger.info(f"Probe scan #{attempt.attempt_id} read {metrics}")

        try:
            advisory = await self._resolve_advisory(metrics)
        except asyncio.CancelledError:
            # RETRACTING always ends in DONE, even without an advisory
            if self._closed:
                self._discard(attempt)
            else:
                self._complete(attempt, ANALYSIS_UNAVAILABLE)
            raise

        if self._closed:
            return self._discard(attempt)

        self._complete(attempt, advisory)
        return ScanOutcome.COMPLETED

    def _complete(self, attempt: ScanAttempt, advisory: str) -> None:
        self.state.advisory_text = advisory
        self._transition(ScanState.DONE)
        attempt.finish(ScanOutcome.COMPLETED)
        self._publish(EventConstants.ADVISORY_READY, {
            'attempt_id': attempt.attempt_id,
            'advisory': advisory
        })
        logger.info(f"Probe scan #{attempt.attempt_id} done in {attempt.duration:.1f}s")

    async def _resolve_advisory(self, metrics: SoilMetrics) -> str:
        try:
            return await self.advisor.analyze(metrics)
        except Exception:
            # Providers must not raise; keep the state machine moving anyway
            logger.exception(f"Advisory provider {self.advisor.name} raised")
            return ANALYSIS_UNAVAILABLE

    def _fail(self, attempt: ScanAttempt, reason: str) -> None:
        attempt.finish(ScanOutcome.FAILED, reason)
        self._transition(ScanState.IDLE)
        logger.error(f"Probe scan #{attempt.attempt_id} failed: {reason}")
        self._publish(EventConstants.SCAN_FAILED, {
            'attempt_id': attempt.attempt_id,
            'error': reason
        }, EventPriority.HIGH)

    def _discard(self, attempt: ScanAttempt) -> ScanOutcome:
        attempt.finish(ScanOutcome.DISCARDED)
        logger.debug(f"Probe scan #{attempt.attempt_id} finished after close, result discarded")
        return ScanOutcome.DISCARDED

    def _transition(self, target: ScanState) -> None:
        current = self.state.scan_state
        check_transition(current, target)
        self.state.scan_state = target
        logger.debug(f"Probe scan state {current.value} -> {target.value}")
        self._publish(EventConstants.SCAN_STATE_CHANGED, {
            'from': current.value,
            'to': target.value
        })

    def _publish(self, event_type: str, data: dict,
                 priority: EventPriority = EventPriority.NORMAL) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, data, source_module="scanning", priority=priority)
