"""Shared logging utilities for FastAPI applications."""

import logging

import common.settings


class HealthCheckFilter(logging.Filter):
    """Filter out health check requests from uvicorn access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return False to suppress health check log entries."""
        return '/health' not in record.getMessage()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging and suppress health checks in uvicorn access logs."""
    logging.basicConfig(
        level=level or common.settings.LOG_LEVEL,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    logging.getLogger('uvicorn.access').addFilter(HealthCheckFilter())
