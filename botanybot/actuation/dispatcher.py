"""
Command Dispatcher

Issues fire-and-forget actuator commands while keeping per-actuator order.

Each actuator has its own lane. Commands on a lane run one at a time in
submission order; lanes run concurrently with each other. Set-point
commands (height, rotation, infrared) can be coalesced: when a newer
command is queued behind one that is still waiting, the older one is
skipped. Completion callbacks only fire for the newest submission of a
lane, so a late acknowledgment never overrides newer user intent.

Failures are logged and published, never retried.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Set

from botanybot.core.events import EventBus, EventConstants, EventPriority

from .base import Actuator

logger = logging.getLogger(__name__)


class CommandOutcome(Enum):
    """How a dispatched command ended"""
    ACKNOWLEDGED = "acknowledged"
    FAILED = "failed"
    SUPERSEDED = "superseded"


@dataclass
class CommandRecord:
    """One dispatched command"""
    actuator: Actuator
    label: str
    sequence: int
    submitted_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    outcome: Optional[CommandOutcome] = None
    error: Optional[BaseException] = None


CommandFactory = Callable[[], Awaitable[object]]
CompletionCallback = Callable[[CommandRecord], None]


class _Lane:
    def __init__(self):
        self.lock = asyncio.Lock()
        self.latest_sequence = 0


class CommandDispatcher:
    """Per-actuator ordered command queue"""

    def __init__(self, event_bus: Optional[EventBus] = None):
        self.event_bus = event_bus
        self._lanes: Dict[Actuator, _Lane] = {}
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def latest_sequence(self, actuator: Actuator) -> int:
        lane = self._lanes.get(actuator)
        return lane.latest_sequence if lane else 0

    def submit(self, actuator: Actuator, label: str, factory: CommandFactory,
               coalesce: bool = False,
               on_complete: Optional[CompletionCallback] = None) -> 'asyncio.Task[CommandRecord]':
        """
        Queue a command on its actuator lane

        Must be called from within the running event loop.

        Args:
            actuator: Lane the command belongs to
            label: Human readable description for logs and events
            factory: Zero-argument callable returning the gateway coroutine
            coalesce: Skip this command if a newer one arrives before it starts
            on_complete: Called with the record if this is still the newest
                submission on its lane when it finishes

        Returns:
            Task resolving to the CommandRecord
        """
        lane = self._lanes.setdefault(actuator, _Lane())
        lane.latest_sequence += 1
        record = CommandRecord(actuator=actuator, label=label, sequence=lane.latest_sequence)

        task = asyncio.ensure_future(self._run(lane, record, factory, coalesce, on_complete))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, lane: _Lane, record: CommandRecord, factory: CommandFactory,
                   coalesce: bool, on_complete: Optional[CompletionCallback]) -> CommandRecord:
        async with lane.lock:
            if coalesce and record.sequence < lane.latest_sequence:
                record.outcome = CommandOutcome.SUPERSEDED
                record.completed_at = datetime.now()
                logger.debug(f"{record.label} superseded before sending")
                self._publish(EventConstants.COMMAND_SUPERSEDED, record)
                return record

            try:
                await factory()
            except Exception as e:
                record.outcome = CommandOutcome.FAILED
                record.error = e
                logger.warning(f"{record.label} failed: {e}")
                self._publish(EventConstants.COMMAND_FAILED, record, EventPriority.HIGH)
            else:
                record.outcome = CommandOutcome.ACKNOWLEDGED
                logger.debug(f"{record.label} acknowledged")
                self._publish(EventConstants.COMMAND_ACKNOWLEDGED, record)
            record.completed_at = datetime.now()

        if on_complete is not None and record.sequence == lane.latest_sequence:
            on_complete(record)
        return record

    def _publish(self, event_type: str, record: CommandRecord,
                 priority: EventPriority = EventPriority.NORMAL) -> None:
        if self.event_bus is None:
            return
        data = {
            'actuator': record.actuator.value,
            'label': record.label,
            'sequence': record.sequence
        }
        if record.error is not None:
            data['error'] = str(record.error)
        self.event_bus.publish(event_type, data, source_module="actuation", priority=priority)

    async def drain(self) -> None:
        """Wait for every outstanding command to finish"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
