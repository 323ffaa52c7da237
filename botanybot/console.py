"""
Robot Console Session

The object a control surface talks to. It owns the RobotState for one
session and binds operator gestures to actuator commands:

- Set-points (height, rotation, infrared) and shutter steps update the
  displayed state immediately and are sent in the background. A failed
  command is reported but never rolls the displayed value back.
- Trim, watering and sun position reads are awaited.
- Probe scans go through the ProbeScanCoordinator.

Only this class and the coordinator mutate the RobotState.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from botanybot.actuation.base import (
    Actuator, ActuatorGateway, SHUTTER_STEP, estimate_shutter_level, validate_angle, validate_height
)
from botanybot.actuation.dispatcher import CommandDispatcher, CommandOutcome, CommandRecord
from botanybot.advisory.base import SoilAdvisoryProvider
from botanybot.control.angular_input import AngularInputDevice
from botanybot.core.config_manager import RobotDefaults
from botanybot.core.events import EventBus, EventConstants
from botanybot.core.exceptions import (
    ActuatorConnectionError, ActuatorError, ActuatorTimeoutError, InfraredDisabledError
)
from botanybot.core.types import (
    ConnectionStatus, PlantType, RobotState, ShutterAction, normalize_angle
)
from botanybot.scanning.probe_coordinator import ProbeScanCoordinator
from botanybot.scanning.scan_state import ScanOutcome

logger = logging.getLogger(__name__)


class RobotConsole:
    """One operator session against one robot"""

    def __init__(self, gateway: ActuatorGateway, advisor: SoilAdvisoryProvider,
                 defaults: Optional[RobotDefaults] = None,
                 event_bus: Optional[EventBus] = None):
        defaults = defaults or RobotDefaults()
        self.gateway = gateway
        self.advisor = advisor
        self.shutter_step = defaults.shutter_step or SHUTTER_STEP
        self.event_bus = event_bus or EventBus()

        self.state = RobotState(
            platform_height=defaults.platform_height,
            rotation_angle=defaults.rotation_angle,
            shutter_level=defaults.shutter_level,
            sun_azimuth=defaults.sun_azimuth
        )
        self.dispatcher = CommandDispatcher(self.event_bus)
        self.coordinator = ProbeScanCoordinator(gateway, advisor, self.state, self.event_bus)

        self.rotation_dial = AngularInputDevice(initial_angle=self.state.rotation_angle)
        self.rotation_dial.add_listener(self.set_rotation_angle)

        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Bring the gateway up and read where the sun is"""
        self.state.connection = ConnectionStatus.SYNCING
        try:
            await self.gateway.initialize()
        except ActuatorError as e:
            self.state.connection = ConnectionStatus.DISCONNECTED
            logger.error(f"Gateway initialization failed: {e}")
            raise

        self.state.connection = ConnectionStatus.CONNECTED
        await self.refresh_sun_position()
        self.event_bus.publish(EventConstants.SESSION_STARTED, self.snapshot(), source_module="console")

    async def close(self) -> None:
        """End the session; results arriving afterwards are dropped"""
        if self._closed:
            return
        self._closed = True
        self.rotation_dial.end()
        self.coordinator.close()
        await self.dispatcher.drain()
        await self.gateway.shutdown()
        self.event_bus.publish(EventConstants.SESSION_CLOSED, {}, source_module="console")
        logger.info("Console session closed")

    def snapshot(self) -> Dict[str, Any]:
        return self.state.to_dict()

    # Optimistic set-points
    def set_platform_height(self, height: int) -> 'asyncio.Task[CommandRecord]':
        height = validate_height(int(height))
        self._ensure_open()
        self.state.platform_height = height
        return self.dispatcher.submit(
            Actuator.PLATFORM, f"platform height {height}%",
            lambda: self.gateway.set_platform_height(height),
            coalesce=True, on_complete=self._on_command_complete
        )

    def set_rotation_angle(self, angle: int) -> 'asyncio.Task[CommandRecord]':
        angle = validate_angle(normalize_angle(angle))
        self._ensure_open()
        self.state.rotation_angle = angle
        self.rotation_dial.sync(angle)
        return self.dispatcher.submit(
            Actuator.ROTATION, f"rotation {angle}°",
            lambda: self.gateway.set_rotation_angle(angle),
            coalesce=True, on_complete=self._on_command_complete
        )

    def control_shutter(self, action: ShutterAction) -> 'asyncio.Task[CommandRecord]':
        self._ensure_open()
        self.state.shutter_level = estimate_shutter_level(self.state.shutter_level, action, self.shutter_step)
        return self.dispatcher.submit(
            Actuator.SHUTTER, f"shutter {action.value}",
            lambda: self.gateway.control_shutter(action),
            on_complete=self._on_command_complete
        )

    def set_infrared_enabled(self, enabled: bool) -> 'asyncio.Task[CommandRecord]':
        self._ensure_open()
        self.state.infrared_enabled = enabled
        return self.dispatcher.submit(
            Actuator.INFRARED, f"infrared {'on' if enabled else 'off'}",
            lambda: self.gateway.set_infrared_enabled(enabled),
            coalesce=True, on_complete=self._on_command_complete
        )

    def toggle_infrared(self) -> 'asyncio.Task[CommandRecord]':
        return self.set_infrared_enabled(not self.state.infrared_enabled)

    # Awaited actions
    async def request_trim(self) -> bool:
        """
        Send a trim request

        Raises:
            InfraredDisabledError: If infrared is switched off
        """
        self._ensure_open()
        if not self.state.infrared_enabled:
            raise InfraredDisabledError("Infrared is off, trim request not sent", module="console")

        record = await self.dispatcher.submit(
            Actuator.TRIM, "trim request", self.gateway.send_trim_request,
            on_complete=self._on_command_complete
        )
        return record.outcome is CommandOutcome.ACKNOWLEDGED

    async def water(self, plant_type: PlantType) -> bool:
        """Start irrigation for one zone; True if the robot acknowledged"""
        self._ensure_open()
        record = await self.dispatcher.submit(
            Actuator.IRRIGATION, f"watering {plant_type.value}",
            lambda: self.gateway.trigger_watering(plant_type),
            on_complete=self._on_command_complete
        )
        return record.outcome is CommandOutcome.ACKNOWLEDGED

    async def refresh_sun_position(self) -> Optional[int]:
        """Read the sun azimuth; keeps the previous value on failure"""
        try:
            azimuth = await self.gateway.get_sun_position()
        except ActuatorError as e:
            logger.error(f"Failed to fetch sun position: {e}")
            if not self._closed:
                self._note_failure(e)
            return None

        if self._closed:
            return None
        self.state.sun_azimuth = normalize_angle(azimuth)
        return self.state.sun_azimuth

    async def run_probe_scan(self) -> ScanOutcome:
        return await self.coordinator.trigger()

    # Acknowledgment handling
    def _on_command_complete(self, record: CommandRecord) -> None:
        if self._closed:
            return
        if record.outcome is CommandOutcome.ACKNOWLEDGED:
            self.state.connection = ConnectionStatus.CONNECTED
        elif record.outcome is CommandOutcome.FAILED and isinstance(record.error, ActuatorError):
            self._note_failure(record.error)

    def _note_failure(self, error: ActuatorError) -> None:
        if isinstance(error, (ActuatorConnectionError, ActuatorTimeoutError)):
            self.state.connection = ConnectionStatus.DISCONNECTED

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Console session is closed")
