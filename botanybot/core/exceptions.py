"""
Custom Exception Classes for the BotanyBot Console

Defines hierarchical exception classes for the different kinds of errors
the console core can run into. Actuator failures are transient and surface
to the caller; advisory failures are recovered inside the advisory layer
and never escape it.

Author: BotanyBot Console Development
"""

from typing import Optional


class BotanyBotError(Exception):
    """Base exception for all console errors"""

    def __init__(self, message: str, error_code: Optional[str] = None, module: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        self.module = module
        super().__init__(self.message)

    def __str__(self):
        parts = [self.message]
        if self.module:
            parts.append(f"Module: {self.module}")
        if self.error_code:
            parts.append(f"Code: {self.error_code}")
        return " | ".join(parts)


# Configuration Errors
class ConfigurationError(BotanyBotError):
    """Raised when configuration is invalid or missing"""
    pass


class ConfigurationNotFoundError(ConfigurationError):
    """Raised when configuration file is not found"""
    pass


class ConfigurationValidationError(ConfigurationError):
    """Raised when configuration values are invalid"""
    pass


# Actuator Errors
class ActuatorError(BotanyBotError):
    """A single gateway call failed (network or hardware unavailable)"""
    pass


class ActuatorConnectionError(ActuatorError):
    """Raised when the robot backend cannot be reached"""
    pass


class ActuatorTimeoutError(ActuatorError):
    """Raised when the robot does not answer in time"""
    pass


class ActuatorCommandError(ActuatorError):
    """Raised when the robot rejects a command"""
    pass


class ActuatorLimitError(ActuatorError):
    """Raised when a command argument is outside the actuator range"""
    pass


class ProbeScanError(ActuatorError):
    """Raised when the soil probe scan fails or returns unusable data"""
    pass


# Advisory Errors
class AdvisoryError(BotanyBotError):
    """Base class for soil advisory errors"""
    pass


class AdvisoryConnectionError(AdvisoryError):
    """Raised when the remote analysis service cannot be reached"""
    pass


class AdvisoryResponseError(AdvisoryError):
    """Raised when the remote analysis service answers with garbage"""
    pass


# Scan Coordination Errors
class ScanCoordinationError(BotanyBotError):
    """Base class for probe scan coordination errors"""
    pass


class InvalidScanTransitionError(ScanCoordinationError):
    """Raised when the scan state machine is asked for an illegal move"""
    pass


# Console Errors
class ConsoleError(BotanyBotError):
    """Base class for operator console errors"""
    pass


class InfraredDisabledError(ConsoleError):
    """Raised when a trim request is issued while infrared is off"""
    pass


# Utility functions for error handling
def create_actuator_error(message: str, actuator: str, error_code: Optional[str] = None) -> ActuatorError:
    """Factory function to create actuator errors with consistent formatting"""
    return ActuatorError(message, error_code=error_code, module=actuator)


def create_scan_error(message: str, error_code: Optional[str] = None) -> ProbeScanError:
    """Factory function to create probe scan errors"""
    return ProbeScanError(message, error_code=error_code, module="probe")


# Exception mapping for easy error type identification
ERROR_TYPE_MAP = {
    'config': ConfigurationError,
    'actuator': ActuatorError,
    'probe': ProbeScanError,
    'advisory': AdvisoryError,
    'scanning': ScanCoordinationError,
    'console': ConsoleError
}


def get_error_class(error_type: str) -> type:
    """Get exception class by error type string"""
    return ERROR_TYPE_MAP.get(error_type, BotanyBotError)


# Names used in the operator documentation
TransientActuatorFailure = ActuatorError
ScanFailure = ProbeScanError
AdvisoryFailure = AdvisoryError
