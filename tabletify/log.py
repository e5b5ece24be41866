"""The ``tabletify`` logger.

Engine operations log instead of raising for anything a host could trigger:
warnings for rejected requests, debug records for clamps and state changes.
"""

from __future__ import annotations

import logging
import sys

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from .config import LogSettings


class _LoggerHolder:
    """Holder for the shared logger, created on first use."""

    instance: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Return the ``tabletify`` logger, adding a stderr handler once."""
    if _LoggerHolder.instance is None:
        logger = logging.getLogger("tabletify")
        logger.setLevel(logging.WARNING)

        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))
            logger.addHandler(handler)

        _LoggerHolder.instance = logger

    return _LoggerHolder.instance


def debug(msg: str) -> None:
    """Record an engine state transition."""
    get_logger().debug(msg)


def warn(msg: str) -> None:
    """Report a request the engine ignored or repaired."""
    get_logger().warning(msg)


def apply_settings(settings: LogSettings) -> None:
    """Apply level and format from a ``LogSettings`` section.

    Parameters
    ----------
    settings : LogSettings
        The logging section of the active settings.
    """
    logger = get_logger()
    logger.setLevel(settings.level)
    for handler in logger.handlers:
        handler.setFormatter(logging.Formatter(settings.format))


def log_callback_error(event: str, exc: BaseException) -> None:
    """Log an exception raised by a host observer, with its traceback.

    Call from within the ``except`` block that caught ``exc``.
    """
    get_logger().exception(f"Observer callback error for '{event}': {exc}")
