"""Models for the geocode cache and its search log."""

import datetime
from datetime import UTC

from sqlmodel import Field, SQLModel


class Location(SQLModel, table=True):
    """A geocoding result cached under its normalized query, written once."""

    __tablename__ = 'locations'  # type: ignore[misc]

    id: int | None = Field(default=None, primary_key=True)
    query: str = Field(index=True, unique=True)
    display_name: str
    lat: float
    lon: float
    # Full provider candidate list as JSON, replayed verbatim on a cache hit.
    raw_response: str
    created_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(UTC)
    )


class SearchLog(SQLModel, table=True):
    """One geocode attempt. location_id is None when nothing was resolved."""

    __tablename__ = 'search_logs'  # type: ignore[misc]

    id: int | None = Field(default=None, primary_key=True)
    query: str
    location_id: int | None = Field(default=None, foreign_key='locations.id')
    client_ip: str = 'unknown'
    client_agent: str = 'unknown'
    timestamp: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(UTC), index=True
    )
