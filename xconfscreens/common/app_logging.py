"""
Logging configuration helpers.

This module owns logging setup for the command-line process, including
version-tagged formatting and optional file handler wiring.
"""

from __future__ import annotations

import logging

from xconfscreens import __version__

__all__ = [
    "logging_setup",
    "logFormatWithVersion_get",
]


def logging_setup(level: str, log_format: str, log_file: str | None) -> None:
    """
    Configure logging handlers and version-tagged format string.

    Args:
        level:
            Effective log level token (for example `INFO` or `DEBUG`).
        log_format:
            Base formatter string.
        log_file:
            Optional log file path.

    Raises:
        ValueError: If `level` is not a logging level name.
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level '{level}'")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    enhanced_format: str = logFormatWithVersion_get(log_format)
    logging.basicConfig(
        level=numeric_level,
        format=enhanced_format,
        handlers=handlers,
        force=True,
    )


def logFormatWithVersion_get(log_format: str) -> str:
    """
    Inject runtime version tag into timestamped log format.

    Args:
        log_format:
            Base formatter string.

    Returns:
        Formatter string with embedded version token.
    """
    return log_format.replace("%(asctime)s", f"%(asctime)s [v{__version__}]")
