#!/usr/bin/env python3
"""
BotanyBot Console - Main Application Entry Point

Initializes configuration, logging, the actuator gateway and the soil
advisory, then runs one console command against the robot and prints
the resulting state as JSON.

Author: BotanyBot Console Development
Python: 3.10+
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from botanybot.actuation import create_actuator_gateway
from botanybot.advisory import LocalHeuristicAdvisor, create_advisory_provider
from botanybot.console import RobotConsole
from botanybot.core.config_manager import DEFAULT_CONFIG_FILE, ConfigManager
from botanybot.core.events import EventBus
from botanybot.core.exceptions import ActuatorLimitError, BotanyBotError
from botanybot.core.logging_setup import setup_logging
from botanybot.core.types import PlantType, ShutterAction, SoilMetrics
from botanybot.scanning.scan_state import ScanOutcome


class BotanyBotApplication:
    """Main application class for the console"""

    def __init__(self, config_path: Optional[Path] = None,
                 log_level: Optional[str] = None, file_logging: Optional[bool] = None):
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE
        self.log_level = log_level
        self.file_logging = file_logging
        self.config: Optional[ConfigManager] = None
        self.event_bus: Optional[EventBus] = None
        self.console: Optional[RobotConsole] = None
        self.logger = logging.getLogger(__name__)

    async def initialize(self) -> RobotConsole:
        """Load configuration, set up logging and open a console session"""
        self.config = ConfigManager(self.config_path)

        log_dir = self.config.get('system.log_dir')
        enable_file = self.file_logging
        if enable_file is None:
            enable_file = bool(self.config.get('system.log_to_file', False))
        setup_logging(
            self.log_level or self.config.get_log_level(),
            log_dir=Path(log_dir) if log_dir else None,
            enable_file=enable_file
        )
        self.logger.info("=== BotanyBot console starting ===")
        self.logger.debug(f"Configuration: {self.config.get_summary()}")

        self.event_bus = EventBus()
        gateway = create_actuator_gateway(self.config.get_gateway_config())
        advisor = create_advisory_provider(self.config.get_advisory_config())

        self.console = RobotConsole(gateway, advisor,
                                    defaults=self.config.get_robot_defaults(),
                                    event_bus=self.event_bus)
        await self.console.start()
        return self.console

    async def shutdown(self):
        if self.console is not None:
            await self.console.close()
        if self.event_bus is not None:
            self.event_bus.shutdown()
        self.logger.info("=== BotanyBot console stopped ===")

    async def run(self, args: argparse.Namespace) -> int:
        """Execute one CLI command inside a console session"""
        try:
            console = await self.initialize()
            return await self._dispatch(console, args)
        finally:
            await self.shutdown()

    async def _dispatch(self, console: RobotConsole, args: argparse.Namespace) -> int:
        if args.command == 'status':
            pass
        elif args.command == 'scan':
            outcome = await console.run_probe_scan()
            if outcome is not ScanOutcome.COMPLETED:
                _print_json({'outcome': outcome.value, 'state': console.snapshot()})
                return 1
        elif args.command == 'rotate':
            await console.set_rotation_angle(args.angle)
        elif args.command == 'height':
            await console.set_platform_height(args.height)
        elif args.command == 'shutter':
            for _ in range(args.steps):
                console.control_shutter(ShutterAction[args.action.upper()])
            await console.dispatcher.drain()
        elif args.command == 'water':
            plant_type = PlantType.SHADE_LOVING if args.zone == 'shade' else PlantType.SUN_LOVING
            if not await console.water(plant_type):
                _print_json({'outcome': 'failed', 'state': console.snapshot()})
                return 1

        _print_json(console.snapshot())
        return 0


async def _advise(args: argparse.Namespace) -> int:
    """Analyze a reading typed on the command line"""
    config = ConfigManager(args.config) if args.config else ConfigManager()
    setup_logging(args.log_level or config.get_log_level(), enable_file=False)

    metrics = SoilMetrics(
        moisture=args.moisture,
        ph=args.ph,
        nitrogen=args.nitrogen,
        temperature=args.temperature,
        light_level=args.light
    )
    if args.local:
        advisor = LocalHeuristicAdvisor()
    else:
        advisor = create_advisory_provider(config.get_advisory_config())

    _print_json({'metrics': metrics.to_dict(), 'strategy': advisor.name,
                 'advisory': await advisor.analyze(metrics)})
    return 0


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='botanybot',
        description='BotanyBot gardening robot operator console'
    )
    parser.add_argument('--config', type=Path, default=None,
                        help=f'Configuration file (default: {DEFAULT_CONFIG_FILE.name})')
    parser.add_argument('--log-level', default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument('--no-file-log', action='store_true',
                        help='Disable log files even if the configuration enables them')

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('status', help='Connect and print the robot state')
    subparsers.add_parser('scan', help='Run a probe scan and print the advisory')

    rotate = subparsers.add_parser('rotate', help='Turn the platform')
    rotate.add_argument('angle', type=int, help='Angle 0-359, 0 = up')

    height = subparsers.add_parser('height', help='Set platform height')
    height.add_argument('height', type=int, help='Height 0-100')

    shutter = subparsers.add_parser('shutter', help='Step the shutter')
    shutter.add_argument('action', choices=['up', 'down'])
    shutter.add_argument('--steps', type=int, default=1)

    water = subparsers.add_parser('water', help='Irrigate one zone')
    water.add_argument('zone', choices=['shade', 'sun'])

    advise = subparsers.add_parser('advise', help='Analyze a soil reading without the robot')
    advise.add_argument('--moisture', type=float, required=True)
    advise.add_argument('--ph', type=float, required=True)
    advise.add_argument('--nitrogen', type=float, default=100.0)
    advise.add_argument('--temperature', type=float, required=True)
    advise.add_argument('--light', type=float, required=True)
    advise.add_argument('--local', action='store_true', help='Force the local heuristic')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        if args.command == 'advise':
            return asyncio.run(_advise(args))

        app = BotanyBotApplication(
            config_path=args.config,
            log_level=args.log_level,
            file_logging=False if args.no_file_log else None
        )
        return asyncio.run(app.run(args))
    except ActuatorLimitError as e:
        print(f"Invalid value: {e}", file=sys.stderr)
        return 2
    except BotanyBotError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid value: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
