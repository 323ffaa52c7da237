"""
Test Probe Scan Coordinator

Drives the scan state machine with a simulated gateway whose probe scan
can be held open or made to fail.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from botanybot.actuation import SimulatedActuatorGateway
from botanybot.advisory import ANALYSIS_UNAVAILABLE, LocalHeuristicAdvisor
from botanybot.core.events import EventBus, EventConstants
from botanybot.core.exceptions import InvalidScanTransitionError, ProbeScanError
from botanybot.core.types import RobotState, ScanState, SoilMetrics
from botanybot.scanning import ALLOWED_TRANSITIONS, ProbeScanCoordinator, ScanOutcome, can_transition
from botanybot.scanning.scan_state import check_transition

READING = SoilMetrics(moisture=20, ph=6.5, nitrogen=120, temperature=22, light_level=1500)
PREVIOUS = SoilMetrics(moisture=55, ph=6.9, nitrogen=140, temperature=21, light_level=900)


class GatedProbe:
    """Probe scan that waits until released"""

    def __init__(self, result=READING):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        self.started.set()
        await self.release.wait()
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def gateway():
    return SimulatedActuatorGateway({'time_scale': 0.0})


@pytest.fixture
def state():
    return RobotState()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def coordinator(gateway, state, bus):
    return ProbeScanCoordinator(gateway, LocalHeuristicAdvisor(), state, bus)


class TestTransitionTable:
    """Test the allowed scan state moves"""

    def test_allowed(self):
        assert can_transition(ScanState.IDLE, ScanState.SCANNING)
        assert can_transition(ScanState.SCANNING, ScanState.RETRACTING)
        assert can_transition(ScanState.SCANNING, ScanState.IDLE)
        assert can_transition(ScanState.RETRACTING, ScanState.DONE)
        assert can_transition(ScanState.DONE, ScanState.SCANNING)

    def test_every_state_listed(self):
        assert set(ALLOWED_TRANSITIONS) == set(ScanState)

    @pytest.mark.parametrize("current,target", [
        (ScanState.IDLE, ScanState.DONE),
        (ScanState.IDLE, ScanState.RETRACTING),
        (ScanState.RETRACTING, ScanState.IDLE),
        (ScanState.DONE, ScanState.IDLE),
        (ScanState.SCANNING, ScanState.DONE),
    ])
    def test_illegal_moves_raise(self, current, target):
        assert not can_transition(current, target)
        with pytest.raises(InvalidScanTransitionError):
            check_transition(current, target)


class TestProbeScanCoordinator:
    """Test the scan workflow"""

    @pytest.mark.asyncio
    async def test_successful_scan(self, coordinator, gateway, state, bus):
        gateway.perform_probe_scan = AsyncMock(return_value=READING)
        state.advisory_text = "stale advice"

        outcome = await coordinator.trigger()

        assert outcome is ScanOutcome.COMPLETED
        assert state.scan_state is ScanState.DONE
        assert state.last_metrics == READING
        assert "moisture low" in state.advisory_text

        moves = [(e.data['from'], e.data['to'])
                 for e in bus.get_event_history(EventConstants.SCAN_STATE_CHANGED)]
        assert moves == [('IDLE', 'SCANNING'), ('SCANNING', 'RETRACTING'), ('RETRACTING', 'DONE')]
        assert len(bus.get_event_history(EventConstants.ADVISORY_READY)) == 1

        attempt = coordinator.attempts[-1]
        assert attempt.outcome is ScanOutcome.COMPLETED
        assert attempt.metrics == READING
        assert attempt.duration >= 0

    @pytest.mark.asyncio
    async def test_intermediate_states(self, coordinator, gateway, state):
        probe = GatedProbe()
        gateway.perform_probe_scan = probe
        advisory_started = asyncio.Event()
        advisory_release = asyncio.Event()

        async def slow_advice(metrics):
            advisory_started.set()
            await advisory_release.wait()
            return "slow advice"

        coordinator.advisor = Mock(name="advisor")
        coordinator.advisor.name = "slow"
        coordinator.advisor.analyze = slow_advice

        task = asyncio.create_task(coordinator.trigger())
        await probe.started.wait()
        assert state.scan_state is ScanState.SCANNING
        assert state.advisory_text is None

        probe.release.set()
        await advisory_started.wait()
        assert state.scan_state is ScanState.RETRACTING
        assert state.last_metrics == READING
        assert state.advisory_text is None

        advisory_release.set()
        assert await task is ScanOutcome.COMPLETED
        assert state.advisory_text == "slow advice"

    @pytest.mark.asyncio
    async def test_failed_scan_keeps_previous_metrics(self, coordinator, gateway, state, bus):
        state.last_metrics = PREVIOUS
        gateway.fail_next('perform_probe_scan', ProbeScanError("probe jammed"))

        outcome = await coordinator.trigger()

        assert outcome is ScanOutcome.FAILED
        assert state.scan_state is ScanState.IDLE
        assert state.last_metrics == PREVIOUS
        assert state.advisory_text is None
        failed = bus.get_event_history(EventConstants.SCAN_FAILED)
        assert "probe jammed" in failed[-1].data['error']
        assert coordinator.attempts[-1].outcome is ScanOutcome.FAILED

    @pytest.mark.asyncio
    async def test_trigger_while_busy_is_rejected(self, coordinator, gateway, state, bus):
        probe = GatedProbe()
        gateway.perform_probe_scan = probe

        first = asyncio.create_task(coordinator.trigger())
        await probe.started.wait()

        assert await coordinator.trigger() is ScanOutcome.REJECTED
        assert probe.calls == 1
        assert state.scan_state is ScanState.SCANNING
        assert len(bus.get_event_history(EventConstants.SCAN_REJECTED)) == 1

        probe.release.set()
        assert await first is ScanOutcome.COMPLETED

    @pytest.mark.asyncio
    async def test_trigger_while_retracting_is_rejected(self, coordinator, gateway, state, bus):
        gateway.perform_probe_scan = AsyncMock(return_value=READING)
        advisory_started = asyncio.Event()
        advisory_release = asyncio.Event()

        async def slow_advice(metrics):
            advisory_started.set()
            await advisory_release.wait()
            return "slow advice"

        coordinator.advisor = Mock()
        coordinator.advisor.name = "slow"
        coordinator.advisor.analyze = slow_advice

        first = asyncio.create_task(coordinator.trigger())
        await advisory_started.wait()

        assert await coordinator.trigger() is ScanOutcome.REJECTED
        gateway.perform_probe_scan.assert_awaited_once()
        assert state.scan_state is ScanState.RETRACTING
        assert state.last_metrics == READING
        assert len(bus.get_event_history(EventConstants.SCAN_REJECTED)) == 1

        advisory_release.set()
        assert await first is ScanOutcome.COMPLETED
        assert state.advisory_text == "slow advice"

    @pytest.mark.asyncio
    async def test_cancel_during_advisory_still_reaches_done(self, coordinator, gateway, state):
        gateway.perform_probe_scan = AsyncMock(return_value=READING)
        advisory_started = asyncio.Event()

        async def hanging_advice(metrics):
            advisory_started.set()
            await asyncio.Event().wait()

        coordinator.advisor = Mock()
        coordinator.advisor.name = "hanging"
        coordinator.advisor.analyze = hanging_advice

        task = asyncio.create_task(coordinator.trigger())
        await advisory_started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert state.scan_state is ScanState.DONE
        assert state.last_metrics == READING
        assert state.advisory_text == ANALYSIS_UNAVAILABLE
        assert coordinator.attempts[-1].outcome is ScanOutcome.COMPLETED

        coordinator.advisor = LocalHeuristicAdvisor()
        assert await coordinator.trigger() is ScanOutcome.COMPLETED
        assert state.scan_state is ScanState.DONE

    @pytest.mark.asyncio
    async def test_cancel_during_advisory_after_close_is_discarded(self, coordinator, gateway, state):
        gateway.perform_probe_scan = AsyncMock(return_value=READING)
        advisory_started = asyncio.Event()

        async def hanging_advice(metrics):
            advisory_started.set()
            await asyncio.Event().wait()

        coordinator.advisor = Mock()
        coordinator.advisor.name = "hanging"
        coordinator.advisor.analyze = hanging_advice

        task = asyncio.create_task(coordinator.trigger())
        await advisory_started.wait()
        coordinator.close()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert state.scan_state is ScanState.RETRACTING
        assert state.advisory_text is None
        assert coordinator.attempts[-1].outcome is ScanOutcome.DISCARDED

    @pytest.mark.asyncio
    async def test_rescan_from_done(self, coordinator, gateway, state):
        gateway.perform_probe_scan = AsyncMock(side_effect=[READING, PREVIOUS])

        await coordinator.trigger()
        first_advice = state.advisory_text
        assert await coordinator.trigger() is ScanOutcome.COMPLETED

        assert state.last_metrics == PREVIOUS
        assert state.advisory_text != first_advice
        assert [a.attempt_id for a in coordinator.attempts] == [1, 2]

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, coordinator, gateway, state):
        gateway.perform_probe_scan = AsyncMock(side_effect=[ProbeScanError("no contact"), READING])

        assert await coordinator.trigger() is ScanOutcome.FAILED
        assert await coordinator.trigger() is ScanOutcome.COMPLETED
        assert state.scan_state is ScanState.DONE

    @pytest.mark.asyncio
    async def test_advisory_exception_still_completes(self, coordinator, gateway, state):
        gateway.perform_probe_scan = AsyncMock(return_value=READING)
        coordinator.advisor = Mock()
        coordinator.advisor.name = "broken"
        coordinator.advisor.analyze = AsyncMock(side_effect=RuntimeError("provider bug"))

        assert await coordinator.trigger() is ScanOutcome.COMPLETED
        assert state.scan_state is ScanState.DONE
        assert state.advisory_text == ANALYSIS_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_close_discards_in_flight_result(self, coordinator, gateway, state):
        probe = GatedProbe()
        gateway.perform_probe_scan = probe

        task = asyncio.create_task(coordinator.trigger())
        await probe.started.wait()
        coordinator.close()
        probe.release.set()

        assert await task is ScanOutcome.DISCARDED
        assert state.last_metrics is None
        assert state.scan_state is ScanState.SCANNING
        assert coordinator.attempts[-1].outcome is ScanOutcome.DISCARDED

    @pytest.mark.asyncio
    async def test_close_discards_late_failure(self, coordinator, gateway, state, bus):
        probe = GatedProbe(result=ProbeScanError("late failure"))
        gateway.perform_probe_scan = probe

        task = asyncio.create_task(coordinator.trigger())
        await probe.started.wait()
        coordinator.close()
        probe.release.set()

        assert await task is ScanOutcome.DISCARDED
        assert bus.get_event_history(EventConstants.SCAN_FAILED) == []

    @pytest.mark.asyncio
    async def test_trigger_after_close_rejected(self, coordinator, gateway):
        gateway.perform_probe_scan = AsyncMock(return_value=READING)
        coordinator.close()

        assert await coordinator.trigger() is ScanOutcome.REJECTED
        gateway.perform_probe_scan.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_attempt_history_is_bounded(self, gateway, state):
        gateway.perform_probe_scan = AsyncMock(return_value=READING)
        coordinator = ProbeScanCoordinator(gateway, LocalHeuristicAdvisor(), state, history_size=3)

        for _ in range(5):
            await coordinator.trigger()

        assert [a.attempt_id for a in coordinator.attempts] == [3, 4, 5]
