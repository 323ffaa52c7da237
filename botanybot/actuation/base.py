"""
Abstract Actuator Gateway Interface

Defines the contract for sending commands to the gardening robot. The
transport (HTTP, serial, message queue, simulator) is up to the
implementation; the console only relies on this interface.

Every operation is asynchronous and may fail independently. Success
returns normally, failure raises an ActuatorError subclass. Gateways do
not retry: one failed attempt surfaces immediately to the caller.

Author: BotanyBot Console Development
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict

from botanybot.core.exceptions import ActuatorLimitError
from botanybot.core.types import PlantType, ShutterAction, SoilMetrics

SHUTTER_STEP = 10


class Actuator(Enum):
    """Command lanes; commands on one lane are applied in submission order"""
    PLATFORM = "platform"
    ROTATION = "rotation"
    SHUTTER = "shutter"
    INFRARED = "infrared"
    TRIM = "trim"
    IRRIGATION = "irrigation"
    SUN_SENSOR = "sun_sensor"
    PROBE = "probe"


class GatewayStatus(Enum):
    """Gateway lifecycle states"""
    DISCONNECTED = "disconnected"
    READY = "ready"
    ERROR = "error"


def estimate_shutter_level(current_level: int, action: ShutterAction, step: int = SHUTTER_STEP) -> int:
    """
    Estimate shutter coverage after one step

    UP uncovers the bed (coverage goes down), DOWN covers it. This is an
    optimistic client-side estimate clamped to 0-100, not a position
    reported by the hardware.
    """
    if action is ShutterAction.UP:
        return max(0, current_level - step)
    return min(100, current_level + step)


def validate_height(height: int) -> int:
    if not 0 <= height <= 100:
        raise ActuatorLimitError(f"Platform height {height} out of range [0, 100]",
                                 module=Actuator.PLATFORM.value)
    return height


def validate_angle(angle: int) -> int:
    if not 0 <= angle <= 359:
        raise ActuatorLimitError(f"Rotation angle {angle} out of range [0, 359]",
                                 module=Actuator.ROTATION.value)
    return angle


class ActuatorGateway(ABC):
    """
    Abstract base class for robot command gateways

    Implementations must raise ActuatorError (or a subclass) on failure and
    must not retry internally.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.status = GatewayStatus.DISCONNECTED

    # Lifecycle
    @abstractmethod
    async def initialize(self) -> bool:
        """
        Prepare the transport

        Returns:
            True if the gateway is ready
        """
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        """Release transport resources"""
        pass

    def is_ready(self) -> bool:
        return self.status == GatewayStatus.READY

    # Actuator commands
    @abstractmethod
    async def set_platform_height(self, height: int) -> bool:
        """
        Raise or lower the shade-loving platform

        Args:
            height: Target height, 0-100

        Raises:
            ActuatorError: If the command fails
        """
        pass

    @abstractmethod
    async def set_rotation_angle(self, angle: int) -> bool:
        """Turn the eccentric platform to an absolute angle, 0-359"""
        pass

    @abstractmethod
    async def control_shutter(self, action: ShutterAction) -> bool:
        """Move the shutter one step up or down"""
        pass

    @abstractmethod
    async def set_infrared_enabled(self, enabled: bool) -> bool:
        """Switch the infrared height sensor used for trimming"""
        pass

    @abstractmethod
    async def send_trim_request(self) -> bool:
        """Ask the trimming unit to cut at the infrared-detected height"""
        pass

    @abstractmethod
    async def trigger_watering(self, plant_type: PlantType) -> bool:
        """Start precision irrigation for one zone"""
        pass

    # Sensors
    @abstractmethod
    async def get_sun_position(self) -> int:
        """
        Read the light sensor array

        Returns:
            Azimuth of the strongest light, 0-359
        """
        pass

    @abstractmethod
    async def perform_probe_scan(self) -> SoilMetrics:
        """
        Insert the soil probe, read all metrics and retract

        Raises:
            ProbeScanError: If the scan fails or returns unusable data
        """
        pass
