"""
Core Data Types for the BotanyBot Console

Defines the data types shared by the console core: soil probe readings,
command discriminators and the robot state aggregate the presentation
layer reads from.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any


class PlantType(Enum):
    """Irrigation zones on the mixed bed"""
    SHADE_LOVING = "shade_loving"
    SUN_LOVING = "sun_loving"


class ShutterAction(Enum):
    """Shutter can only be raised or lowered one step at a time"""
    UP = "UP"
    DOWN = "DOWN"


class ConnectionStatus(Enum):
    """Link state between console and robot"""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    SYNCING = "syncing"


class ScanState(Enum):
    """Probe scan state, owned by the probe scan coordinator"""
    IDLE = "IDLE"
    SCANNING = "SCANNING"
    RETRACTING = "RETRACTING"
    DONE = "DONE"


def normalize_angle(angle: float) -> int:
    """Wrap any angle into [0, 360)"""
    return int(angle) % 360


def shortest_angular_distance(from_angle: int, to_angle: int) -> int:
    """
    Signed shortest step from one angle to another

    Result is in [-180, 180). Crossing the 0/360 seam counts as a small
    step, so 359 -> 0 is +1 and 0 -> 359 is -1.
    """
    return (to_angle - from_angle + 180) % 360 - 180


@dataclass(frozen=True)
class SoilMetrics:
    """Snapshot produced by a completed probe scan"""
    moisture: float      # Percentage
    ph: float            # 0-14
    nitrogen: float      # ppm
    temperature: float   # Celsius
    light_level: float   # Lux

    def __post_init__(self):
        """Validate metric ranges"""
        if not (0 <= self.moisture <= 100):
            raise ValueError(f"Moisture {self.moisture} out of range [0, 100]")
        if not (0 <= self.ph <= 14):
            raise ValueError(f"pH {self.ph} out of range [0, 14]")
        if self.nitrogen < 0:
            raise ValueError(f"Nitrogen {self.nitrogen} cannot be negative")
        if self.light_level < 0:
            raise ValueError(f"Light level {self.light_level} cannot be negative")

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for serialization"""
        return {
            'moisture': self.moisture,
            'ph': self.ph,
            'nitrogen': self.nitrogen,
            'temperature': self.temperature,
            'light_level': self.light_level
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SoilMetrics':
        """Create from dictionary (accepts camelCase lightLevel from the robot backend)"""
        light_level = data['light_level'] if 'light_level' in data else data['lightLevel']
        return cls(
            moisture=float(data['moisture']),
            ph=float(data['ph']),
            nitrogen=float(data['nitrogen']),
            temperature=float(data['temperature']),
            light_level=float(light_level)
        )

    def __str__(self) -> str:
        return (f"SoilMetrics(moisture={self.moisture:.0f}%, ph={self.ph:.1f}, "
                f"N={self.nitrogen:.0f}ppm, T={self.temperature:.1f}C, light={self.light_level:.0f}lx)")


@dataclass
class RobotState:
    """
    Current commanded actuator positions plus probe scan results

    Created at session start with placeholder values and mutated in place
    by the console's command handlers and the probe scan coordinator.
    Nothing is persisted.
    """
    platform_height: int = 50      # 0-100
    rotation_angle: int = 0        # 0-359
    shutter_level: int = 20        # 0-100, optimistic estimate
    sun_azimuth: int = 135         # 0-359
    infrared_enabled: bool = False
    connection: ConnectionStatus = ConnectionStatus.CONNECTED
    scan_state: ScanState = ScanState.IDLE
    last_metrics: Optional[SoilMetrics] = None
    advisory_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot for the presentation layer"""
        return {
            'platform_height': self.platform_height,
            'rotation_angle': self.rotation_angle,
            'shutter_level': self.shutter_level,
            'sun_azimuth': self.sun_azimuth,
            'infrared_enabled': self.infrared_enabled,
            'connection': self.connection.value,
            'scan_state': self.scan_state.value,
            'last_metrics': self.last_metrics.to_dict() if self.last_metrics else None,
            'advisory_text': self.advisory_text
        }
