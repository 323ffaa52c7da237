"""
Configuration Manager for the BotanyBot Console

Handles loading, validation, and management of console configuration
from YAML files. Provides type-safe access to configuration values
with validation and default fallbacks.

Author: BotanyBot Console Development
"""

import os
import yaml
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass

from .exceptions import (
    ConfigurationError,
    ConfigurationNotFoundError,
    ConfigurationValidationError
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).resolve().parent.parent / "config" / "botanybot_config.yaml"

GATEWAY_TYPES = ('simulated', 'http')


@dataclass
class GatewayConfig:
    """Configuration for the actuator gateway"""
    type: str  # "simulated" or "http"
    base_url: str
    timeout: float
    probe_timeout: float
    time_scale: float = 1.0
    sun_azimuth: int = 135
    seed: Optional[int] = None


@dataclass
class AdvisoryConfig:
    """Configuration for the soil advisory provider"""
    api_key: Optional[str]
    endpoint: str
    model: str
    timeout: float

    @property
    def has_credential(self) -> bool:
        """A non-blank credential selects the remote strategy"""
        return bool(self.api_key and self.api_key.strip())


@dataclass
class RobotDefaults:
    """Placeholder actuator values used until the robot reports otherwise"""
    platform_height: int = 50
    rotation_angle: int = 0
    shutter_level: int = 20
    sun_azimuth: int = 135
    shutter_step: int = 10


class ConfigManager:
    """
    Centralized configuration management for the console

    Features:
    - YAML configuration file loading
    - Type-safe configuration access
    - Configuration validation
    - Default value handling
    - Environment variable overrides
    - Configuration change detection
    """

    def __init__(self, config_file: Union[str, Path] = DEFAULT_CONFIG_FILE):
        self.config_file = Path(config_file)
        self._config_data: Dict[str, Any] = {}
        self._file_mtime: Optional[float] = None
        self._validated = False

        self.reload()

    def reload(self) -> bool:
        """
        Reload configuration from file

        Returns:
            True if reload successful
        """
        if not self.config_file.exists():
            raise ConfigurationNotFoundError(
                f"Configuration file not found: {self.config_file}"
            )

        current_mtime = self.config_file.stat().st_mtime
        if self._file_mtime == current_mtime and self._config_data:
            logger.debug("Configuration file unchanged, skipping reload")
            return True

        try:
            with open(self.config_file, 'r', encoding='utf-8') as file:
                self._config_data = yaml.safe_load(file) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_file}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration: {e}")

        if not isinstance(self._config_data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self.config_file}")

        self._file_mtime = current_mtime
        self._validated = False

        self._apply_env_overrides()
        self.validate()

        logger.info(f"Configuration loaded from {self.config_file}")
        return True

    def _apply_env_overrides(self):
        """Apply environment variable overrides to configuration"""
        env_mappings = {
            'BOTANYBOT_LOG_LEVEL': 'system.log_level',
            'BOTANYBOT_SIMULATION': 'system.simulation_mode',
            'BOTANYBOT_GATEWAY_URL': 'gateway.base_url',
            'API_KEY': 'advisory.api_key',
            'BOTANYBOT_ADVISORY_API_KEY': 'advisory.api_key',
        }

        for env_var, config_path in env_mappings.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                self._set_nested_value(config_path, env_value)
                if config_path == 'advisory.api_key':
                    logger.debug(f"Applied environment override: {config_path} = ****")
                else:
                    logger.debug(f"Applied environment override: {config_path} = {env_value}")

    def _set_nested_value(self, path: str, value: Any):
        """Set a nested configuration value using dot notation"""
        keys = path.split('.')
        current = self._config_data

        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]

        # Credentials stay strings even when they look numeric
        if isinstance(value, str) and keys[-1] != 'api_key':
            if value.lower() in ('true', 'false'):
                value = value.lower() == 'true'
            elif value.isdigit():
                value = int(value)
            elif value.replace('.', '', 1).isdigit():
                value = float(value)

        current[keys[-1]] = value

    def validate(self) -> bool:
        """
        Validate configuration values

        Returns:
            True if validation successful

        Raises:
            ConfigurationValidationError: If validation fails
        """
        self._validate_system_config()
        self._validate_gateway_config()
        self._validate_advisory_config()
        self._validate_robot_config()

        self._validated = True
        logger.debug("Configuration validation successful")
        return True

    def _validate_system_config(self):
        """Validate system configuration section"""
        log_level = self.get('system.log_level')
        if not log_level:
            raise ConfigurationValidationError("Missing required field: system.log_level")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if str(log_level).upper() not in valid_log_levels:
            raise ConfigurationValidationError(
                f"Invalid log level '{log_level}'. Must be one of: {valid_log_levels}"
            )

    def _validate_gateway_config(self):
        """Validate actuator gateway configuration"""
        gateway = self.get('gateway') or {}
        if not isinstance(gateway, dict):
            raise ConfigurationValidationError("gateway section must be a mapping")

        gateway_type = gateway.get('type', 'simulated')
        if gateway_type not in GATEWAY_TYPES:
            raise ConfigurationValidationError(
                f"Invalid gateway type '{gateway_type}'. Must be one of: {list(GATEWAY_TYPES)}"
            )

        if gateway_type == 'http' and not self.is_simulation_mode() and not gateway.get('base_url'):
            raise ConfigurationValidationError("HTTP gateway requires gateway.base_url")

        for field in ('timeout', 'probe_timeout'):
            value = gateway.get(field, 1.0)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationValidationError(f"gateway.{field} must be a positive number")

        time_scale = self.get('gateway.simulation.time_scale', 1.0)
        if not isinstance(time_scale, (int, float)) or time_scale < 0:
            raise ConfigurationValidationError("gateway.simulation.time_scale cannot be negative")

    def _validate_advisory_config(self):
        """Validate advisory configuration"""
        timeout = self.get('advisory.timeout', 20.0)
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigurationValidationError("advisory.timeout must be a positive number")

        api_key = self.get('advisory.api_key')
        if api_key and not self.get('advisory.endpoint'):
            raise ConfigurationValidationError("advisory.endpoint is required when an api_key is set")

    def _validate_robot_config(self):
        """Validate placeholder actuator values"""
        robot = self.get('robot') or {}
        if not isinstance(robot, dict):
            raise ConfigurationValidationError("robot section must be a mapping")

        for field in ('platform_height', 'shutter_level'):
            value = robot.get(field, 0)
            if not isinstance(value, int) or not 0 <= value <= 100:
                raise ConfigurationValidationError(f"robot.{field} must be an integer in 0-100")

        for field in ('rotation_angle', 'sun_azimuth'):
            value = robot.get(field, 0)
            if not isinstance(value, int) or not 0 <= value < 360:
                raise ConfigurationValidationError(f"robot.{field} must be an integer in 0-359")

        step = robot.get('shutter_step', 10)
        if not isinstance(step, int) or not 1 <= step <= 100:
            raise ConfigurationValidationError("robot.shutter_step must be an integer in 1-100")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation

        Args:
            key: Configuration key in dot notation (e.g., 'gateway.base_url')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        try:
            value = self._config_data
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def get_gateway_config(self) -> GatewayConfig:
        """Get typed gateway configuration"""
        gateway_type = self.get('gateway.type', 'simulated')
        if self.is_simulation_mode():
            gateway_type = 'simulated'

        seed = self.get('gateway.simulation.seed')
        return GatewayConfig(
            type=gateway_type,
            base_url=str(self.get('gateway.base_url', '') or ''),
            timeout=float(self.get('gateway.timeout', 5.0)),
            probe_timeout=float(self.get('gateway.probe_timeout', 15.0)),
            time_scale=float(self.get('gateway.simulation.time_scale', 1.0)),
            sun_azimuth=int(self.get('gateway.simulation.sun_azimuth', 135)),
            seed=int(seed) if seed is not None else None
        )

    def get_advisory_config(self) -> AdvisoryConfig:
        """Get typed advisory configuration"""
        api_key = self.get('advisory.api_key')
        return AdvisoryConfig(
            api_key=str(api_key) if api_key else None,
            endpoint=str(self.get('advisory.endpoint', '') or ''),
            model=str(self.get('advisory.model', 'soil-advisor')),
            timeout=float(self.get('advisory.timeout', 20.0))
        )

    def get_robot_defaults(self) -> RobotDefaults:
        """Get typed placeholder actuator values"""
        robot = self.get('robot', {}) or {}
        return RobotDefaults(
            platform_height=int(robot.get('platform_height', 50)),
            rotation_angle=int(robot.get('rotation_angle', 0)),
            shutter_level=int(robot.get('shutter_level', 20)),
            sun_azimuth=int(robot.get('sun_azimuth', 135)),
            shutter_step=int(robot.get('shutter_step', 10))
        )

    def is_simulation_mode(self) -> bool:
        """Check if the console drives the simulated robot"""
        return bool(self.get('system.simulation_mode', False))

    def get_log_level(self) -> str:
        """Get configured log level"""
        return str(self.get('system.log_level', 'INFO')).upper()

    def has_changed(self) -> bool:
        """Check if configuration file has changed since last load"""
        if not self.config_file.exists():
            return False

        current_mtime = self.config_file.stat().st_mtime
        return current_mtime != self._file_mtime

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration summary for logging/debugging (credential redacted)"""
        gateway = self.get_gateway_config()
        advisory = self.get_advisory_config()
        return {
            'config_file': str(self.config_file),
            'validated': self._validated,
            'simulation_mode': self.is_simulation_mode(),
            'log_level': self.get_log_level(),
            'gateway_type': gateway.type,
            'gateway_url': gateway.base_url,
            'advisory_strategy': 'remote' if advisory.has_credential else 'local',
            'advisory_endpoint': advisory.endpoint
        }
