"""Logging and health-check plumbing for the back-office service."""

from .health import HealthStatus, ServiceHealth
from .logging_config import RequestLoggingMiddleware, get_logger, setup_logging

__all__ = [
    "HealthStatus",
    "ServiceHealth",
    "RequestLoggingMiddleware",
    "get_logger",
    "setup_logging",
]
