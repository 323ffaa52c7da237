"""
Actuator Gateway Module

Sends commands to the gardening robot:
- Abstract gateway contract
- Per-actuator ordered command dispatch
- Simulated robot for development and tests
- HTTP gateway for the robot backend
"""

from typing import Any, Dict, Union

from botanybot.core.config_manager import GatewayConfig

from .base import (
    Actuator, ActuatorGateway, GatewayStatus, SHUTTER_STEP, estimate_shutter_level
)
from .dispatcher import CommandDispatcher, CommandOutcome, CommandRecord
from .http_gateway import HttpActuatorGateway
from .simulated_gateway import SimulatedActuatorGateway


def create_actuator_gateway(config: Union[GatewayConfig, Dict[str, Any]]) -> ActuatorGateway:
    """Create the gateway selected by configuration"""
    if isinstance(config, GatewayConfig):
        config = {
            'type': config.type,
            'base_url': config.base_url,
            'timeout': config.timeout,
            'probe_timeout': config.probe_timeout,
            'time_scale': config.time_scale,
            'sun_azimuth': config.sun_azimuth,
            'seed': config.seed
        }

    gateway_type = config.get('type', 'simulated')
    if gateway_type == 'simulated':
        return SimulatedActuatorGateway(config)
    elif gateway_type == 'http':
        return HttpActuatorGateway(config)
    else:
        raise ValueError(f"Unknown gateway type: {gateway_type}")


__all__ = [
    'Actuator',
    'ActuatorGateway',
    'GatewayStatus',
    'SHUTTER_STEP',
    'estimate_shutter_level',
    'CommandDispatcher',
    'CommandOutcome',
    'CommandRecord',
    'HttpActuatorGateway',
    'SimulatedActuatorGateway',
    'create_actuator_gateway'
]
