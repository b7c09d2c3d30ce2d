"""Shared application settings read from environment variables."""

import os

DEFAULT_ALLOWED_ORIGINS = (
    'http://localhost:5173,https://daylightviz.org,https://www.daylightviz.org'
)


def parse_origins(value: str) -> list[str]:
    """Split a comma-separated origin list, dropping blanks and trailing slashes."""
    return [o.strip().rstrip('/') for o in value.split(',') if o.strip()]


ALLOWED_ORIGINS: list[str] = parse_origins(
    os.environ.get('ALLOWED_ORIGINS', DEFAULT_ALLOWED_ORIGINS)
)
LOG_LEVEL: str = os.environ.get('LOG_LEVEL', 'INFO').upper()
