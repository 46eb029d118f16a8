"""
Logging Configuration Module.

Central logging setup of the VoiceDeck-AI tool runtime. Nothing is configured
on import: the host application calls ``setup_logging`` once at startup, and
every module obtains its logger through ``get_logger(__name__)``.

Features:
- Console handler at the configured level
- Optional DEBUG file handler (``<log_file_dir>/voicedeck_ai.log``)
- ``simple``, ``detailed`` and ``json`` line formats
- Per-package levels for the runtime and its noisy dependencies
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from voicedeck_ai.core.config import Settings

LOG_FILE_NAME = "voicedeck_ai.log"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"line": %(lineno)d, "message": "%(message)s"}'
)

FORMATS: Dict[str, str] = {
    "simple": SIMPLE_FORMAT,
    "detailed": DETAILED_FORMAT,
    "json": JSON_FORMAT,
}

MODULE_LOG_LEVELS: Dict[str, str] = {
    "voicedeck_ai.tool_runtime": "DEBUG",
    "voicedeck_ai.tool_runtime.capabilities": "INFO",
    "voicedeck_ai.tool_runtime.context": "INFO",
    "voicedeck_ai.tool_runtime.sandbox": "DEBUG",
    "voicedeck_ai.tool_runtime.catalog": "DEBUG",
    "voicedeck_ai.tool_runtime.session": "DEBUG",
    # Third-party libraries
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "asyncio": "WARNING",
}


def _default_settings() -> "Settings":
    # Imported here so a broken environment only fails when logging is configured.
    from voicedeck_ai.core.config import settings

    return settings


def _build_handlers(level: str, formatter: logging.Formatter, file_dir: Optional[str]) -> List[logging.Handler]:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: List[logging.Handler] = [console_handler]

    if file_dir is not None:
        Path(file_dir).mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(Path(file_dir) / LOG_FILE_NAME)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
    return handlers


def setup_logging(
    settings: Optional["Settings"] = None,
    *,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Configure the root logger for the runtime.

    Args:
        settings: Source of the defaults; the process-wide settings when omitted
        log_level: Override of the console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override of the line format (simple, detailed, json); unknown names fall back to detailed
        enable_file: Allow the file handler; it is only added when the settings enable file logging
    """
    settings = settings or _default_settings()
    level = (log_level or settings.log_level).upper()
    fmt = log_format or settings.log_format
    file_dir = settings.log_file_dir if enable_file and settings.enable_file_logging else None

    formatter = logging.Formatter(FORMATS.get(fmt, DETAILED_FORMAT), datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Handlers filter
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in _build_handlers(level, formatter, file_dir):
        root_logger.addHandler(handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info("Logging configured: level=%s, format=%s, file_dir=%s", level, fmt, file_dir)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)
