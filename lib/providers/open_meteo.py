"""
Open-Meteo forecast and geocoding clients, dood!

Forecast API returns parallel arrays under ``hourly``; geocoding returns a
``results`` list which is absent altogether when nothing matched.
"""

import datetime
import logging
from typing import Any, Dict, List

from lib.utils import floorToHour

from .base import BaseProviderClient
from .exceptions import TransportError
from .models import CloudSample, GeocodeCandidate, toPercent

logger = logging.getLogger(__name__)

# Canonical band -> Open-Meteo hourly variable
HOURLY_FIELDS: Dict[str, str] = {
    "total": "cloudcover",
    "low": "cloudcover_low",
    "medium": "cloudcover_mid",
    "high": "cloudcover_high",
}


def _parseTime(value: Any) -> datetime.datetime:
    # Requested with timezone=UTC, so times come without offset
    return floorToHour(datetime.datetime.fromisoformat(str(value)))


class OpenMeteoForecastClient(BaseProviderClient):
    """
    Primary weather provider with per-layer cloud cover, dood!

    Example:
        >>> client = OpenMeteoForecastClient(rateLimiterQueue="open-meteo")
        >>> samples = await client.fetchHourly(51.8986, -8.4756, 48)
        >>> samples[0].provider
        'open-meteo'
    """

    providerName = "open-meteo"
    DEFAULT_BASE_URL = "https://api.open-meteo.com/v1/forecast"
    DEFAULT_TIMEOUT = 12

    async def fetchHourly(self, lat: float, lon: float, hours: int) -> List[CloudSample]:
        """
        Get hourly cloud cover starting from the current hour, dood!

        Args:
            lat: Latitude
            lon: Longitude
            hours: Number of hours to request (1-384 as accepted by the API)

        Returns:
            List[CloudSample]: Samples in provider order

        Raises:
            TransportError: Request failed or payload is malformed
        """
        params = {
            "latitude": lat,
            "longitude": lon,
            "hourly": ",".join(HOURLY_FIELDS.values()),
            "timezone": "UTC",
            "forecast_hours": hours,
        }

        responseData = await self._makeRequest(self.baseUrl, params)
        return self._parseHourly(responseData)

    def _parseHourly(self, responseData: Any) -> List[CloudSample]:
        hourly = responseData.get("hourly") if isinstance(responseData, dict) else None
        if not isinstance(hourly, dict) or not hourly.get("time"):
            raise TransportError(self.providerName, "malformed response: no hourly data")

        times = hourly["time"]
        columns = {band: hourly.get(field) or [] for band, field in HOURLY_FIELDS.items()}

        samples: List[CloudSample] = []
        for i, rawTime in enumerate(times):
            try:
                hour = _parseTime(rawTime)
            except (TypeError, ValueError):
                logger.warning(f"Skipping unparsable Open-Meteo time {rawTime!r}")
                continue

            values = {band: toPercent(column[i]) if i < len(column) else None for band, column in columns.items()}
            samples.append(CloudSample(time=hour, provider=self.providerName, **values))

        logger.debug(f"Parsed {len(samples)} Open-Meteo samples, dood!")
        return samples


class OpenMeteoGeocodingClient(BaseProviderClient):
    """
    Free-text location search, dood!

    Example:
        >>> client = OpenMeteoGeocodingClient(rateLimiterQueue="open-meteo-geocoding")
        >>> candidates = await client.search("Cork", limit=5)
    """

    providerName = "open-meteo-geocoding"
    DEFAULT_BASE_URL = "https://geocoding-api.open-meteo.com/v1/search"
    DEFAULT_TIMEOUT = 10

    async def search(self, query: str, limit: int = 5, language: str = "en") -> List[GeocodeCandidate]:
        """
        Search locations by name, dood!

        Args:
            query: Free-form location name
            limit: Maximum number of candidates
            language: Result language

        Returns:
            List[GeocodeCandidate]: Candidates in relevance order, empty if nothing matched

        Raises:
            TransportError: Request failed or payload is malformed
        """
        params = {
            "name": query,
            "count": limit,
            "language": language,
            "format": "json",
        }

        responseData = await self._makeRequest(self.baseUrl, params)
        if not isinstance(responseData, dict):
            raise TransportError(self.providerName, "malformed response")

        results = responseData.get("results") or []
        if not isinstance(results, list):
            raise TransportError(self.providerName, "malformed response: results is not a list")

        candidates: List[GeocodeCandidate] = []
        for result in results:
            if not isinstance(result, dict):
                continue
            candidates.append(
                {
                    "name": str(result.get("name", "")),
                    "latitude": result.get("latitude"),
                    "longitude": result.get("longitude"),
                    "country": str(result.get("country") or ""),
                    "admin1": str(result.get("admin1") or ""),
                    "admin2": str(result.get("admin2") or ""),
                    "timezone": str(result.get("timezone") or ""),
                }
            )

        logger.debug(f"Found {len(candidates)} locations for {query!r}, dood!")
        return candidates
