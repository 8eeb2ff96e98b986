"""INGV FDSN API Client - Imperative Shell.

This module handles HTTP communication with the INGV earthquake web service.
All I/O is contained here; parsing and UTC normalization are in the core module.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any

import requests

from quakewatch.core.config import DEFAULT_FEED_URL


logger = logging.getLogger(__name__)


# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30

# FDSN services answer 204 when the query matches no events
HTTP_NO_CONTENT = 204


@dataclass
class FeedQueryParams:
    """Parameters for an FDSN event query.

    Attributes:
        start_date: Fetch events on or after this day (UTC)
        end_time: Fetch events before this time
        min_magnitude: Minimum magnitude to fetch
        min_latitude: Southern boundary (optional)
        max_latitude: Northern boundary (optional)
        min_longitude: Western boundary (optional)
        max_longitude: Eastern boundary (optional)
        limit: Maximum number of results (None for the service default)
    """
    start_date: date | None = None
    end_time: datetime | None = None
    min_magnitude: float | None = None
    min_latitude: float | None = None
    max_latitude: float | None = None
    min_longitude: float | None = None
    max_longitude: float | None = None
    limit: int | None = None


class INGVClient:
    """Client for fetching event data from the INGV FDSN service.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_FEED_URL,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize INGV client.

        Args:
            base_url: FDSN event query endpoint
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.timeout = timeout

    def _build_params(self, query: FeedQueryParams) -> dict[str, str]:
        """Build query parameters for an FDSN request.

        Args:
            query: Query parameters

        Returns:
            Dict of URL query parameters
        """
        params: dict[str, str] = {
            "format": "geojson",
            "orderby": "time",
        }

        if query.min_magnitude is not None:
            params["minmag"] = str(query.min_magnitude)

        if query.start_date is not None:
            params["starttime"] = query.start_date.isoformat()

        if query.end_time is not None:
            params["endtime"] = query.end_time.strftime("%Y-%m-%dT%H:%M:%S")

        bounds = {
            "minlat": query.min_latitude,
            "maxlat": query.max_latitude,
            "minlon": query.min_longitude,
            "maxlon": query.max_longitude,
        }
        for name, value in bounds.items():
            if value is not None:
                params[name] = str(value)

        if query.limit is not None:
            params["limit"] = str(query.limit)

        return params

    def fetch_events(self, query: FeedQueryParams) -> dict[str, Any]:
        """Fetch event data from the FDSN service.

        This method performs HTTP I/O.

        Args:
            query: Query parameters

        Returns:
            Raw GeoJSON FeatureCollection

        Raises:
            requests.RequestException: If the request fails
            ValueError: If the response body is not a JSON object
        """
        params = self._build_params(query)

        logger.info(
            "Fetching events from INGV",
            extra={"params": params},
        )

        response = requests.get(
            self.base_url,
            params=params,
            timeout=self.timeout,
        )
        response.raise_for_status()

        if response.status_code == HTTP_NO_CONTENT or not response.content:
            logger.info("INGV returned no events")
            return {"type": "FeatureCollection", "features": []}

        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(
                f"INGV response is not a JSON object (got {type(data).__name__})"
            )

        logger.info(
            "Fetched %d events from INGV",
            len(data.get("features", [])),
        )

        return data

    def fetch_recent(
        self,
        days: int = 3,
        min_magnitude: float | None = 0.0,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Convenience method to fetch the trailing window of events.

        The window starts at midnight UTC `days` days ago.

        Args:
            days: How many days back to fetch
            min_magnitude: Minimum magnitude
            limit: Maximum results

        Returns:
            Raw GeoJSON response
        """
        today = datetime.now(timezone.utc).date()

        query = FeedQueryParams(
            start_date=today - timedelta(days=days),
            min_magnitude=min_magnitude,
            limit=limit,
        )

        return self.fetch_events(query)
