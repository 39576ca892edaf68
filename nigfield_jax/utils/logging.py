"""
Logging for the nigfield_jax package.

All loggers live under the ``nigfield_jax`` root logger. A console handler is
attached lazily the first time a logger is requested, unless the application
has configured handlers of its own.
"""

import inspect
import logging
from typing import Optional

_ROOT_LOGGER_NAME = "nigfield_jax"
_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class _LoggerManager:
    """Configures the package root logger once."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._configured = False
        return cls._instance

    def configure(self, level: str = "WARNING", force: bool = False):
        """Set the root level and attach a console handler if none exists."""
        if self._configured and not force:
            return

        root_logger = logging.getLogger(_ROOT_LOGGER_NAME)
        root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

        if not root_logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(_FORMAT))
            root_logger.addHandler(handler)

        self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        if name == "__main__":
            full_name = f"{_ROOT_LOGGER_NAME}.main"
        elif name.startswith(_ROOT_LOGGER_NAME):
            full_name = name
        else:
            full_name = f"{_ROOT_LOGGER_NAME}.{name}"

        if not self._configured:
            self.configure()

        return logging.getLogger(full_name)


_logger_manager = _LoggerManager()


def configure(level: str = "WARNING") -> None:
    """Reconfigure the package log level (e.g. ``configure("DEBUG")``)."""
    _logger_manager.configure(level, force=True)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance with automatic naming.

    Args:
        name: Logger name. If None, uses caller's module name.

    Returns:
        Logger under the package root.
    """
    if name is None:
        frame = inspect.currentframe()
        try:
            caller_frame = frame.f_back
            if caller_frame:
                name = caller_frame.f_globals.get("__name__", "unknown")
        finally:
            del frame

    return _logger_manager.get_logger(name or "unknown")


__all__ = ["configure", "get_logger"]
