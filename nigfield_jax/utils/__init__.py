from .logging import configure as configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
