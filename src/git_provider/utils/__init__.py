"""Utility modules for the git provider adapter."""

from .logger import get_logger, log_exception, LoggerSetup, RedactingFilter

__all__ = [
    "get_logger",
    "log_exception",
    "LoggerSetup",
    "RedactingFilter",
]
