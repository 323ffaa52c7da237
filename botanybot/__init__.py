"""
BotanyBot Operator Console

Core logic behind the gardening robot console: the rotation dial, the
actuator gateway contract, the soil advisory strategies and the probe
scan coordinator.
"""

__version__ = "2.1.0"
