"""HTTP routes for geocoding, analytics and export."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from . import analytics, geocoder, services
from .database import get_session

router = APIRouter(prefix='/api')


def get_gateway() -> geocoder.NominatimGateway:
    """Return the process-wide Nominatim gateway."""
    return geocoder.gateway


def client_ip(request: Request) -> str:
    """Best-effort client address: first proxy hop, else the socket peer."""
    forwarded = request.headers.get('x-forwarded-for')
    if forwarded:
        first_hop = forwarded.split(',')[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return 'unknown'


@router.get('/geocode')
def geocode(
    request: Request,
    q: str | None = None,
    session: Session = Depends(get_session),
    gateway: geocoder.NominatimGateway = Depends(get_gateway),
) -> list[dict[str, Any]]:
    """Resolve a place name, serving repeated queries from the cache."""
    try:
        return services.geocode(
            session,
            gateway,
            q,
            client_ip=client_ip(request),
            client_agent=request.headers.get('user-agent') or 'unknown',
        )
    except geocoder.GeocodeUnavailable:
        raise HTTPException(status_code=503, detail='Geocoding failed') from None


@router.get('/analytics', response_model=analytics.AnalyticsReport)
def get_analytics(session: Session = Depends(get_session)) -> analytics.AnalyticsReport:
    """Search volume, popular queries and cache hit rate."""
    return analytics.get_analytics(session)


@router.get('/export', response_model=analytics.ExportSnapshot)
def export(session: Session = Depends(get_session)) -> analytics.ExportSnapshot:
    """Dump every cached location and search log entry."""
    return analytics.export_snapshot(session)
