"""Read-through geocode cache backed by the location store and search log."""

import json
import logging
from datetime import UTC, datetime

import sqlalchemy.exc
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select

from .geocoder import Candidate, GeocodeUnavailable, NominatimGateway
from .models import Location, SearchLog

logger = logging.getLogger(__name__)

# Matches the client's own debounce threshold; shorter input is still being typed.
MIN_QUERY_LENGTH = 3


def normalize_query(raw_query: str) -> str:
    """Lowercase and trim a search string to form its cache key."""
    return raw_query.strip().lower()


def find_location(session: Session, query: str) -> Location | None:
    """Return the cached location for a normalized query, or None."""
    return session.exec(select(Location).where(Location.query == query)).first()


def insert_location_if_absent(
    session: Session,
    query: str,
    display_name: str,
    lat: float,
    lon: float,
    raw_response: str,
) -> Location:
    """Store a location under query unless one is already stored.

    The first writer wins: a concurrent or repeated insert for the same key is
    a no-op rather than an error or an overwrite. Returns whichever row is
    stored for the key afterwards.
    """
    stmt = (
        sqlite_insert(Location.__table__)  # type: ignore[attr-defined]
        .values(
            query=query,
            display_name=display_name,
            lat=lat,
            lon=lon,
            raw_response=raw_response,
            created_at=datetime.now(UTC),
        )
        .on_conflict_do_nothing(index_elements=['query'])
    )
    session.connection().execute(stmt)
    session.commit()
    location = find_location(session, query)
    assert location is not None
    return location


def record_search(
    session: Session,
    raw_query: str,
    location_id: int | None,
    client_ip: str,
    client_agent: str,
) -> SearchLog | None:
    """Append a search log entry.

    A failed write is rolled back and logged, never raised. Returns None in
    that case.
    """
    entry = SearchLog(
        query=raw_query,
        location_id=location_id,
        client_ip=client_ip,
        client_agent=client_agent,
    )
    try:
        session.add(entry)
        session.commit()
    except sqlalchemy.exc.SQLAlchemyError:
        session.rollback()
        logger.exception('Failed to record search log entry for %r', raw_query)
        return None
    return entry


def geocode(
    session: Session,
    gateway: NominatimGateway,
    raw_query: str | None,
    client_ip: str = 'unknown',
    client_agent: str = 'unknown',
) -> list[Candidate]:
    """Resolve a free-text query to candidates, serving repeats from the cache.

    Queries shorter than MIN_QUERY_LENGTH return an empty list without touching
    the store, the log or the gateway. Every other attempt is logged exactly
    once. On a miss the full provider list is returned and stored verbatim
    under the first candidate, so a later hit replays the same list.

    Raises:
        GeocodeUnavailable: the query missed the cache and the gateway failed.
    """
    if raw_query is None or len(raw_query) < MIN_QUERY_LENGTH:
        return []

    query = normalize_query(raw_query)
    cached = find_location(session, query)
    if cached is not None:
        logger.info('Cache hit for %r', raw_query)
        stored: list[Candidate] = json.loads(cached.raw_response)
        record_search(session, raw_query, cached.id, client_ip, client_agent)
        return stored

    logger.info('Cache miss for %r, querying Nominatim', raw_query)
    try:
        candidates = gateway.resolve(raw_query)
    except GeocodeUnavailable:
        record_search(session, raw_query, None, client_ip, client_agent)
        raise

    if not candidates:
        logger.info('No results for %r', raw_query)
        record_search(session, raw_query, None, client_ip, client_agent)
        return []

    first = candidates[0]
    location = insert_location_if_absent(
        session,
        query,
        display_name=str(first.get('display_name', '')),
        lat=float(first['lat']),
        lon=float(first['lon']),
        raw_response=json.dumps(candidates),
    )
    logger.info('Cached %r -> %s', raw_query, location.display_name)
    record_search(session, raw_query, location.id, client_ip, client_agent)
    return candidates
