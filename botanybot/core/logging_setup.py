"""
Logging Setup for the BotanyBot Console

Provides centralized logging configuration with coloured console output,
log rotation, and per-subsystem log files.

Author: BotanyBot Console Development
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels for console output"""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[1;31m' # Bold Red
    }
    RESET = '\033[0m'

    def format(self, record):
        if record.levelname in self.COLORS:
            # Colour a copy so file handlers keep the plain level name
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
            )
        return super().format(record)


class ConsoleLogFilter(logging.Filter):
    """Tags each record with the console subsystem it came from"""

    def filter(self, record):
        if not hasattr(record, 'subsystem'):
            # botanybot.<subsystem>.<module>
            name_parts = record.name.split('.')
            if len(name_parts) >= 2 and name_parts[0] == 'botanybot':
                record.subsystem = name_parts[1]
            else:
                record.subsystem = 'system'

        return True


class ModuleFilter(logging.Filter):
    """Filter to only allow logs from a specific module"""

    def __init__(self, module_name: str):
        super().__init__()
        self.module_name = module_name

    def filter(self, record):
        return record.name.startswith(self.module_name)


SUBSYSTEM_LOGS = [
    ('botanybot.actuation', 'actuation.log'),
    ('botanybot.scanning', 'probe_scan.log'),
    ('botanybot.advisory', 'advisory.log'),
    ('botanybot.control', 'control.log')
]


def setup_logging(log_level: str = "INFO",
                  log_dir: Optional[Path] = None,
                  enable_console: bool = True,
                  enable_file: bool = True,
                  max_file_size: int = 10 * 1024 * 1024,  # 10MB
                  backup_count: int = 5) -> logging.Logger:
    """
    Setup centralized logging for the console

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files (None for default)
        enable_console: Enable console logging
        enable_file: Enable file logging
        max_file_size: Maximum log file size before rotation
        backup_count: Number of backup log files to keep

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(numeric_level)

    detailed_formatter = logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(subsystem)-9s | %(name)-30s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_formatter = ColoredFormatter(
        fmt='%(asctime)s | %(levelname)-8s | %(subsystem)-9s | %(message)s',
        datefmt='%H:%M:%S'
    )

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(console_formatter)
        console_handler.addFilter(ConsoleLogFilter())
        root_logger.addHandler(console_handler)

    if enable_file:
        if log_dir is None:
            log_dir = Path.home() / "botanybot_logs"
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "botanybot.log",
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(detailed_formatter)
        file_handler.addFilter(ConsoleLogFilter())
        root_logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "botanybot_errors.log",
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(detailed_formatter)
        error_handler.addFilter(ConsoleLogFilter())
        root_logger.addHandler(error_handler)

        _configure_subsystem_loggers(log_dir, detailed_formatter, numeric_level)

    logger = logging.getLogger(__name__)
    logger.info("BotanyBot logging initialized")
    logger.debug(f"Log level: {log_level}, console: {enable_console}, "
                 f"file: {enable_file}, directory: {log_dir}")

    return root_logger


def _configure_subsystem_loggers(log_dir: Path, formatter: logging.Formatter, level: int):
    """Give each subsystem its own rotating log file"""
    for logger_name, log_filename in SUBSYSTEM_LOGS:
        logger = logging.getLogger(logger_name)

        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()

        module_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / log_filename,
            maxBytes=5 * 1024 * 1024,  # 5MB per subsystem
            backupCount=3,
            encoding='utf-8'
        )
        module_handler.setLevel(level)
        module_handler.setFormatter(formatter)
        module_handler.addFilter(ConsoleLogFilter())
        module_handler.addFilter(ModuleFilter(logger_name))
        logger.addHandler(module_handler)


def setup_simple_logging(level: str = "INFO") -> logging.Logger:
    """Setup simple console-only logging for development/testing"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%H:%M:%S'
    )
    return logging.getLogger()
