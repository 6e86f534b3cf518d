"""Logging package."""

from whgateway.logging.logger import StructuredLogger, get_logger, LogLevel

__all__ = ["StructuredLogger", "get_logger", "LogLevel"]
