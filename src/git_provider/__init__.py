"""Canonical git hosting provider adapters."""

from .utils.logger import LoggerSetup

LoggerSetup.setup_logging()

__version__ = "0.1.0"
