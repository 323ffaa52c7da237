"""
Operator Input Module

Turns raw pointer/touch input into actuator set-points.
"""

from .angular_input import AngularInputDevice, pointer_to_angle

__all__ = [
    'AngularInputDevice',
    'pointer_to_angle'
]
