"""Gateway to the OpenStreetMap Nominatim forward geocoder.

Nominatim's usage policy asks for a descriptive User-Agent and at most one
request per second, so every call goes through geopy's RateLimiter and carries
NOMINATIM_USER_AGENT. Results are returned exactly as the provider sent them,
in the provider's relevance order. Nothing is cached here.
"""

import logging
import os
from typing import Any

from geopy import exc as geopy_exc  # pyright: ignore[reportMissingTypeStubs]
from geopy import geocoders  # pyright: ignore[reportMissingTypeStubs]
from geopy.extra.rate_limiter import RateLimiter  # pyright: ignore[reportMissingTypeStubs]

logger = logging.getLogger(__name__)

NOMINATIM_USER_AGENT = os.getenv(
    'NOMINATIM_USER_AGENT', 'DaylightViz/1.0 (daylightviz.org)'
)
NOMINATIM_TIMEOUT = float(os.getenv('NOMINATIM_TIMEOUT', '10'))
NOMINATIM_MIN_DELAY = float(os.getenv('NOMINATIM_MIN_DELAY', '1.0'))
NOMINATIM_RESULT_LIMIT = int(os.getenv('NOMINATIM_RESULT_LIMIT', '5'))

Candidate = dict[str, Any]

REQUIRED_FIELDS = ('display_name', 'lat', 'lon')


class GeocodeUnavailable(Exception):
    """The upstream geocoder could not produce an answer."""


class NominatimGateway:
    """Forward geocoding against Nominatim, one rate-limited request per call."""

    def __init__(
        self,
        user_agent: str = NOMINATIM_USER_AGENT,
        timeout: float = NOMINATIM_TIMEOUT,
        min_delay_seconds: float = NOMINATIM_MIN_DELAY,
        limit: int = NOMINATIM_RESULT_LIMIT,
    ) -> None:
        self.geolocator = geocoders.Nominatim(user_agent=user_agent, timeout=timeout)
        self.limit = limit
        # Concurrent callers queue here, so a caller may wait min_delay_seconds per
        # request ahead of it before its own timeout starts.
        self._rate_limited_search = RateLimiter(
            self._search,
            min_delay_seconds=min_delay_seconds,
            max_retries=0,
            swallow_exceptions=False,
        )

    def _search(self, query: str) -> Any:
        return self.geolocator.geocode(  # type: ignore[union-attr]
            query, exactly_one=False, limit=self.limit
        )

    def resolve(self, query: str) -> list[Candidate]:
        """Return the provider's candidates for query, possibly empty.

        Raises:
            GeocodeUnavailable: the request timed out, the service could not be
                reached, answered with an error status, or sent a body that
                could not be parsed or lacks a candidate's name or coordinates.
        """
        try:
            results = self._rate_limited_search(query)
        except geopy_exc.GeocoderTimedOut as e:
            logger.warning('Nominatim timed out for %r: %s', query, e)
            raise GeocodeUnavailable('Geocoder timed out') from e
        except geopy_exc.GeocoderParseError as e:
            logger.warning('Nominatim sent an unparseable body for %r: %s', query, e)
            raise GeocodeUnavailable('Geocoder response was malformed') from e
        except geopy_exc.GeocoderUnavailable as e:
            logger.warning('Nominatim unreachable for %r: %s', query, e)
            raise GeocodeUnavailable('Geocoder unreachable') from e
        except geopy_exc.GeopyError as e:
            logger.warning('Nominatim error for %r: %s', query, e)
            raise GeocodeUnavailable('Geocoder returned an error') from e
        except (TypeError, ValueError) as e:
            # geopy builds Location objects from the body; bad coordinates land here
            logger.warning('Nominatim sent malformed candidates for %r: %s', query, e)
            raise GeocodeUnavailable('Geocoder response was malformed') from e

        if not results:
            return []
        candidates = [location.raw for location in results]
        for candidate in candidates:
            missing = [f for f in REQUIRED_FIELDS if candidate.get(f) is None]
            if missing:
                logger.warning(
                    'Nominatim sent a candidate without %s for %r',
                    ', '.join(missing),
                    query,
                )
                raise GeocodeUnavailable('Geocoder response was malformed')
        return candidates


gateway = NominatimGateway()
