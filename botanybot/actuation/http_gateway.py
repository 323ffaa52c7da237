"""
HTTP Actuator Gateway

Talks to the robot backend over its REST control API. Every response uses
the envelope {"success": bool, "data": ..., "message": str}. The requests
calls are blocking, so they run in the event loop's default executor.

Endpoints (relative to base_url):
    POST /api/control/platform/height   {"height": 0-100}
    POST /api/control/rotation          {"angle": 0-359}
    POST /api/control/shutter           {"action": "UP" | "DOWN"}
    POST /api/control/infrared          {"enabled": bool}
    POST /api/control/trim              {}
    POST /api/control/irrigation        {"plant_type": "shade_loving" | "sun_loving"}
    GET  /api/sensors/sun               -> data {"azimuth": 0-359}
    POST /api/probe/scan                -> data {moisture, ph, nitrogen, temperature, lightLevel}
"""

import asyncio
import functools
import logging
from typing import Any, Dict, Optional

import requests

from botanybot.core.exceptions import (
    ActuatorCommandError, ActuatorConnectionError, ActuatorTimeoutError, ProbeScanError
)
from botanybot.core.types import PlantType, ShutterAction, SoilMetrics

from .base import ActuatorGateway, GatewayStatus, validate_angle, validate_height

logger = logging.getLogger(__name__)


class HttpActuatorGateway(ActuatorGateway):
    """Robot backend reached over HTTP"""

    def __init__(self, config: Dict[str, Any], session: Optional[requests.Session] = None):
        super().__init__(config)
        self.base_url = str(config.get('base_url', '')).rstrip('/')
        self.timeout = float(config.get('timeout', 5.0))
        self.probe_timeout = float(config.get('probe_timeout', 15.0))
        self.session = session

    async def initialize(self) -> bool:
        if self.session is None:
            self.session = requests.Session()
            self.session.headers.update({'Accept': 'application/json'})
        self.status = GatewayStatus.READY
        logger.info(f"HTTP gateway targeting {self.base_url}")
        return True

    async def shutdown(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None
        self.status = GatewayStatus.DISCONNECTED
        logger.info("HTTP gateway closed")

    async def _call(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None,
                    timeout: Optional[float] = None) -> Any:
        """Run one request off the event loop and unwrap the envelope"""
        if self.session is None:
            raise ActuatorConnectionError("HTTP gateway not initialized", module="http")

        loop = asyncio.get_running_loop()
        request = functools.partial(self._request, method, path, payload, timeout or self.timeout)
        return await loop.run_in_executor(None, request)

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]], timeout: float) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, timeout=timeout)
        except requests.Timeout:
            raise ActuatorTimeoutError(f"{method} {path} timed out after {timeout}s", module="http")
        except requests.ConnectionError as e:
            raise ActuatorConnectionError(f"Robot backend unreachable: {e}", module="http")
        except requests.RequestException as e:
            raise ActuatorCommandError(f"{method} {path} failed: {e}", module="http")

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = body.get('message') if isinstance(body, dict) else None
            raise ActuatorCommandError(
                f"{method} {path} returned HTTP {response.status_code}: {message or response.reason}",
                error_code=str(response.status_code), module="http"
            )

        if not isinstance(body, dict):
            raise ActuatorCommandError(f"{method} {path} returned a malformed response", module="http")

        if not body.get('success', False):
            raise ActuatorCommandError(
                f"{method} {path} rejected: {body.get('message', 'no reason given')}", module="http"
            )

        logger.debug(f"{method} {path} acknowledged")
        return body.get('data')

    async def set_platform_height(self, height: int) -> bool:
        validate_height(height)
        await self._call('POST', '/api/control/platform/height', {'height': height})
        return True

    async def set_rotation_angle(self, angle: int) -> bool:
        validate_angle(angle)
        await self._call('POST', '/api/control/rotation', {'angle': angle})
        return True

    async def control_shutter(self, action: ShutterAction) -> bool:
        await self._call('POST', '/api/control/shutter', {'action': action.value})
        return True

    async def set_infrared_enabled(self, enabled: bool) -> bool:
        await self._call('POST', '/api/control/infrared', {'enabled': enabled})
        return True

    async def send_trim_request(self) -> bool:
        await self._call('POST', '/api/control/trim', {})
        return True

    async def trigger_watering(self, plant_type: PlantType) -> bool:
        await self._call('POST', '/api/control/irrigation', {'plant_type': plant_type.value})
        return True

    async def get_sun_position(self) -> int:
        data = await self._call('GET', '/api/sensors/sun')
        try:
            return int(data['azimuth']) % 360
        except (KeyError, TypeError, ValueError):
            raise ActuatorCommandError(f"Sun sensor returned unusable data: {data!r}", module="http")

    async def perform_probe_scan(self) -> SoilMetrics:
        try:
            data = await self._call('POST', '/api/probe/scan', {}, timeout=self.probe_timeout)
        except ActuatorCommandError as e:
            raise ProbeScanError(str(e.message), error_code=e.error_code, module="probe")

        try:
            return SoilMetrics.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ProbeScanError(f"Probe returned unusable metrics: {e}", module="probe")
