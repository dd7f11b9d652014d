"""Utility exports."""

from .logging import JsonFormatter, configure_logging, get_logger, remove_logging_handler

__all__ = ["JsonFormatter", "configure_logging", "get_logger", "remove_logging_handler"]
