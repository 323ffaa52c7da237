"""
Simulated Actuator Gateway

Stands in for the robot during development, demos and tests. Commands
take a short, configurable time and are recorded; the probe scan returns
plausible random soil readings. Faults can be injected per operation.
"""

import asyncio
import logging
import random
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional, Tuple

from botanybot.core.exceptions import ActuatorError, ProbeScanError
from botanybot.core.types import PlantType, ShutterAction, SoilMetrics

from .base import ActuatorGateway, GatewayStatus, validate_angle, validate_height

logger = logging.getLogger(__name__)

# Seconds per operation at time_scale 1.0
DEFAULT_LATENCIES = {
    'initialize': 0.0,
    'set_platform_height': 0.1,
    'set_rotation_angle': 0.05,
    'control_shutter': 0.1,
    'set_infrared_enabled': 0.05,
    'send_trim_request': 0.2,
    'trigger_watering': 1.0,
    'get_sun_position': 0.2,
    'perform_probe_scan': 2.5
}


class SimulatedActuatorGateway(ActuatorGateway):
    """In-process robot double"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config or {})
        self.time_scale = float(self.config.get('time_scale', 1.0))
        self.sun_azimuth = int(self.config.get('sun_azimuth', 135)) % 360
        self.latencies = dict(DEFAULT_LATENCIES)
        self.latencies.update(self.config.get('latencies', {}))
        self._rng = random.Random(self.config.get('seed'))

        self.command_log: List[Tuple[str, Any]] = []
        self.positions: Dict[str, Any] = {
            'platform_height': None,
            'rotation_angle': None,
            'infrared_enabled': False
        }
        self._faults: Dict[str, Deque[Exception]] = defaultdict(deque)

    async def initialize(self) -> bool:
        await self._simulate('initialize', None)
        self.status = GatewayStatus.READY
        logger.info("Simulated gateway ready")
        return True

    async def shutdown(self) -> None:
        self.status = GatewayStatus.DISCONNECTED
        logger.info("Simulated gateway stopped")

    def fail_next(self, operation: str, error: Optional[Exception] = None) -> None:
        """Make the next call of an operation raise"""
        if operation not in self.latencies:
            raise ValueError(f"Unknown operation: {operation}")
        if error is None:
            error = ActuatorError(f"Simulated failure in {operation}", module="simulator")
        self._faults[operation].append(error)

    async def _simulate(self, operation: str, argument: Any) -> None:
        delay = self.latencies.get(operation, 0.0) * self.time_scale
        if delay > 0:
            await asyncio.sleep(delay)
        if self._faults[operation]:
            error = self._faults[operation].popleft()
            logger.warning(f"[Simulator] {operation}({argument}) failed: {error}")
            raise error
        self.command_log.append((operation, argument))

    async def set_platform_height(self, height: int) -> bool:
        validate_height(height)
        logger.info(f"[Simulator] Platform height -> {height}%")
        await self._simulate('set_platform_height', height)
        self.positions['platform_height'] = height
        return True

    async def set_rotation_angle(self, angle: int) -> bool:
        validate_angle(angle)
        logger.debug(f"[Simulator] Rotation -> {angle}°")
        await self._simulate('set_rotation_angle', angle)
        self.positions['rotation_angle'] = angle
        return True

    async def control_shutter(self, action: ShutterAction) -> bool:
        logger.info(f"[Simulator] Shutter {action.value}")
        await self._simulate('control_shutter', action)
        return True

    async def set_infrared_enabled(self, enabled: bool) -> bool:
        logger.info(f"[Simulator] Infrared {'on' if enabled else 'off'}")
        await self._simulate('set_infrared_enabled', enabled)
        self.positions['infrared_enabled'] = enabled
        return True

    async def send_trim_request(self) -> bool:
        logger.info("[Simulator] Trim request sent")
        await self._simulate('send_trim_request', None)
        return True

    async def trigger_watering(self, plant_type: PlantType) -> bool:
        logger.info(f"[Simulator] Watering {plant_type.value} zone")
        await self._simulate('trigger_watering', plant_type)
        return True

    async def get_sun_position(self) -> int:
        await self._simulate('get_sun_position', None)
        return self.sun_azimuth

    async def perform_probe_scan(self) -> SoilMetrics:
        logger.info("[Simulator] Probe scan sequence started")
        await self._simulate('perform_probe_scan', None)
        try:
            return SoilMetrics(
                moisture=self._rng.randint(30, 69),
                ph=round(self._rng.uniform(5.5, 7.5), 1),
                nitrogen=self._rng.randint(80, 179),
                temperature=self._rng.randint(18, 27),
                light_level=self._rng.randint(200, 5199)
            )
        except ValueError as e:
            raise ProbeScanError(f"Simulated probe produced invalid data: {e}", module="simulator")
