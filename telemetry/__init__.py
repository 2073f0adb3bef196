"""
Telemetry module for structured logging.

Provides the JSONFormatter used for all service logs and setup_logging()
to install it on the root logger.
"""

from telemetry.service import JSONFormatter, setup_logging

__all__ = ["JSONFormatter", "setup_logging"]
