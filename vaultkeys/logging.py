"""
Centralized logging configuration for vaultkeys.

Provides:
- Console logging with colored, prefixed output by application area
- Optional file logging with timestamps for post-mortem analysis
- Easy-to-use logger factory for different components

Console output goes to stderr so the CLI can keep stdout for results.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


# ANSI color codes for console output
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"


# Area-specific colors and prefixes
AREA_CONFIG = {
    "main": {"color": Colors.BRIGHT_CYAN, "prefix": "VAULTKEYS.main"},
    "cli": {"color": Colors.CYAN, "prefix": "VAULTKEYS.cli"},
    "api": {"color": Colors.BRIGHT_GREEN, "prefix": "VAULTKEYS.api"},
    "api.keys": {"color": Colors.GREEN, "prefix": "VAULTKEYS.api.keys"},
    "keys": {"color": Colors.BRIGHT_MAGENTA, "prefix": "VAULTKEYS.keys"},
    "webkey": {"color": Colors.BLUE, "prefix": "VAULTKEYS.webkey"},
    "client": {"color": Colors.BRIGHT_BLUE, "prefix": "VAULTKEYS.client"},
}

# Default for unknown areas
DEFAULT_AREA_CONFIG = {"color": Colors.WHITE, "prefix": "VAULTKEYS"}


class ColoredConsoleFormatter(logging.Formatter):
    """Custom formatter that adds colors and area prefixes to console output."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.RESET,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BRIGHT_RED + Colors.BOLD,
    }

    def __init__(self, area: str = "main"):
        super().__init__()
        config = AREA_CONFIG.get(area, DEFAULT_AREA_CONFIG)
        self.area_color = config["color"]
        self.area_prefix = config["prefix"]

    def format(self, record: logging.LogRecord) -> str:
        level_color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        # Format: [VAULTKEYS.area] HH:MM:SS LEVEL: message
        prefix = f"{self.area_color}[{self.area_prefix}]{Colors.RESET}"
        time_str = f"{Colors.DIM}{timestamp}{Colors.RESET}"
        level_str = f"{level_color}{record.levelname:<8}{Colors.RESET}"

        return f"{prefix} {time_str} {level_str} {record.getMessage()}"


class FileFormatter(logging.Formatter):
    """Formatter for file output with full timestamps and structured format."""

    def __init__(self, area: str = "main"):
        super().__init__()
        config = AREA_CONFIG.get(area, DEFAULT_AREA_CONFIG)
        self.area_prefix = config["prefix"]

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        extra = ""
        if hasattr(record, "vault_name"):
            extra += f" vault={record.vault_name}"
        if hasattr(record, "key_name"):
            extra += f" key={record.key_name}"

        # Format: TIMESTAMP [AREA] LEVEL: message (extra)
        return f"{timestamp} [{self.area_prefix}] {record.levelname}: {record.getMessage()}{extra}"


_log_dir: Optional[Path] = None
_file_handler: Optional[logging.FileHandler] = None
_console_level: int = logging.INFO


def setup_logging(
    log_dir: Optional[str] = None,
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Optional[Path]:
    """
    Initialize the logging system.

    Args:
        log_dir: Directory for log files. No file log is written when empty.
        console_level: Minimum level for console output
        file_level: Minimum level for file output

    Returns:
        Path to the log directory, or None without file logging
    """
    global _log_dir, _file_handler, _console_level

    _console_level = console_level

    if not log_dir:
        _apply_to_existing_loggers()
        return None

    _log_dir = Path(log_dir)
    _log_dir.mkdir(parents=True, exist_ok=True)

    log_filename = datetime.now().strftime("vaultkeys_%Y%m%d_%H%M%S.log")
    log_path = _log_dir / log_filename

    latest_link = _log_dir / "latest.log"
    try:
        if latest_link.is_symlink() or latest_link.exists():
            latest_link.unlink()
        latest_link.symlink_to(log_filename)
    except OSError:
        pass  # Symlinks may not work on all systems

    if _file_handler:
        _file_handler.close()
    _file_handler = logging.FileHandler(log_path, encoding="utf-8")
    _file_handler.setLevel(file_level)
    _file_handler.setFormatter(FileFormatter("main"))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(_file_handler)

    root_logger.info(f"Logging initialized. Log file: {log_path}")

    _apply_to_existing_loggers()

    return _log_dir


def _add_area_file_handler(logger: logging.Logger, area: str) -> None:
    area_file_handler = logging.FileHandler(
        _file_handler.baseFilename,
        encoding="utf-8"
    )
    area_file_handler.setLevel(logging.DEBUG)
    area_file_handler.setFormatter(FileFormatter(area))
    logger.addHandler(area_file_handler)


def _apply_to_existing_loggers() -> None:
    """Bring loggers created at import time in line with the current setup."""
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if not name.startswith("vaultkeys.") or not isinstance(logger, logging.Logger):
            continue
        has_file_handler = False
        for handler in list(logger.handlers):
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(_console_level)
            elif _file_handler and handler.baseFilename == _file_handler.baseFilename:
                has_file_handler = True
            else:
                # Left over from an earlier log directory
                logger.removeHandler(handler)
                handler.close()
        if _file_handler and not has_file_handler and logger.handlers:
            _add_area_file_handler(logger, name[len("vaultkeys."):])


def get_logger(area: str = "main") -> logging.Logger:
    """
    Get a logger for a specific application area.

    Args:
        area: The application area (e.g., "keys", "client", "api.keys")

    Returns:
        Configured logger instance

    Example:
        logger = get_logger("client")
        logger.info("Key created")
        # Output: [VAULTKEYS.client] 14:32:15 INFO     Key created
    """
    logger = logging.getLogger(f"vaultkeys.{area}")

    if not logger.handlers:
        logger.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(_console_level)
        console_handler.setFormatter(ColoredConsoleFormatter(area))
        logger.addHandler(console_handler)

        if _file_handler:
            _add_area_file_handler(logger, area)

        # Don't propagate to root to avoid duplicate logs
        logger.propagate = False

    return logger
