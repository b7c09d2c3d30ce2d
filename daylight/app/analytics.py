"""Read-only reports over the search log and location store."""

import datetime
from datetime import UTC

import pydantic
import pydantic.alias_generators
from sqlmodel import Session, col, func, select

from .models import Location, SearchLog

TOP_SEARCHES_LIMIT = 10
RECENT_SEARCHES_LIMIT = 20


class _CamelModel(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(
        alias_generator=pydantic.alias_generators.to_camel,
        populate_by_name=True,
    )


class TopSearch(_CamelModel):
    """A raw query and how many times it was searched."""

    query: str
    count: int


class RecentSearch(_CamelModel):
    """A raw query and when it was searched."""

    query: str
    timestamp: datetime.datetime


class AnalyticsReport(_CamelModel):
    """Usage summary served by the analytics endpoint."""

    total_searches: int
    unique_locations: int
    top_searches: list[TopSearch]
    recent_searches: list[RecentSearch]
    cache_hit_rate: float


class ExportSnapshot(pydantic.BaseModel):
    """Full dump of both tables."""

    locations: list[Location]
    searches: list[SearchLog]
    exported_at: datetime.datetime


def hit_rate(resolved: int, total: int) -> float:
    """Percentage of searches that resolved to a stored location, 0 when none."""
    if total == 0:
        return 0.0
    return 100 * resolved / total


def count_searches(session: Session) -> int:
    """Return the total number of search log entries."""
    return session.exec(select(func.count()).select_from(SearchLog)).one()


def count_resolved_searches(session: Session) -> int:
    """Return the number of search log entries that reference a location."""
    return session.exec(
        select(func.count())
        .select_from(SearchLog)
        .where(col(SearchLog.location_id).is_not(None))
    ).one()


def count_locations(session: Session) -> int:
    """Return the number of cached locations."""
    return session.exec(select(func.count()).select_from(Location)).one()


def top_searches(session: Session, limit: int = TOP_SEARCHES_LIMIT) -> list[TopSearch]:
    """Return the most frequent raw queries, most frequent first."""
    count = func.count().label('count')
    rows = session.exec(
        select(SearchLog.query, count)
        .group_by(SearchLog.query)
        .order_by(count.desc(), SearchLog.query)
        .limit(limit)
    ).all()
    return [TopSearch(query=query, count=n) for query, n in rows]


def recent_searches(
    session: Session, limit: int = RECENT_SEARCHES_LIMIT
) -> list[RecentSearch]:
    """Return the latest searches, newest first."""
    entries = session.exec(
        select(SearchLog)
        .order_by(col(SearchLog.timestamp).desc(), col(SearchLog.id).desc())
        .limit(limit)
    ).all()
    return [RecentSearch(query=e.query, timestamp=e.timestamp) for e in entries]


def get_analytics(
    session: Session,
    top_n: int = TOP_SEARCHES_LIMIT,
    recent_n: int = RECENT_SEARCHES_LIMIT,
) -> AnalyticsReport:
    """Build the usage summary."""
    total = count_searches(session)
    return AnalyticsReport(
        total_searches=total,
        unique_locations=count_locations(session),
        top_searches=top_searches(session, top_n),
        recent_searches=recent_searches(session, recent_n),
        cache_hit_rate=hit_rate(count_resolved_searches(session), total),
    )


def export_snapshot(session: Session) -> ExportSnapshot:
    """Dump every location and search log entry, newest first."""
    locations = session.exec(
        select(Location).order_by(
            col(Location.created_at).desc(), col(Location.id).desc()
        )
    ).all()
    searches = session.exec(
        select(SearchLog).order_by(
            col(SearchLog.timestamp).desc(), col(SearchLog.id).desc()
        )
    ).all()
    return ExportSnapshot(
        locations=list(locations),
        searches=list(searches),
        exported_at=datetime.datetime.now(UTC),
    )
