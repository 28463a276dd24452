"""
MET Norway locationforecast client, dood!
"""

import datetime
import logging
from typing import Any, Dict, List

from lib.utils import floorToHour

from .base import BaseProviderClient
from .exceptions import TransportError
from .models import CloudSample, toPercent

logger = logging.getLogger(__name__)

# Canonical band -> instant detail field
DETAIL_FIELDS: Dict[str, str] = {
    "total": "cloud_area_fraction",
    "low": "cloud_area_fraction_low",
    "medium": "cloud_area_fraction_medium",
    "high": "cloud_area_fraction_high",
}


class MetNoClient(BaseProviderClient):
    """
    Secondary weather provider, dood!

    MET Norway terms require an identifying User-Agent and at most four
    decimals in coordinates. The API always returns its full horizon (hourly
    first, then coarser steps); the caller picks the hours it needs.

    Example:
        >>> client = MetNoClient(userAgent="MySite/1.0 contact:me@example.com", rateLimiterQueue="met-no")
        >>> samples = await client.fetchHourly(51.8986, -8.4756, 48)
    """

    providerName = "met-no"
    DEFAULT_BASE_URL = "https://api.met.no/weatherapi/locationforecast/2.0/complete"
    DEFAULT_TIMEOUT = 15

    async def fetchHourly(self, lat: float, lon: float, hours: int) -> List[CloudSample]:
        """
        Get cloud cover time series, dood!

        Args:
            lat: Latitude
            lon: Longitude
            hours: Requested horizon, not sent upstream

        Returns:
            List[CloudSample]: Samples in provider order

        Raises:
            TransportError: Request failed or payload is malformed
        """
        params = {"lat": round(lat, 4), "lon": round(lon, 4)}

        responseData = await self._makeRequest(self.baseUrl, params)
        return self._parseTimeseries(responseData)

    def _parseTimeseries(self, responseData: Any) -> List[CloudSample]:
        properties = responseData.get("properties") if isinstance(responseData, dict) else None
        timeseries = properties.get("timeseries") if isinstance(properties, dict) else None
        if not isinstance(timeseries, list) or not timeseries:
            raise TransportError(self.providerName, "malformed response: no timeseries")

        samples: List[CloudSample] = []
        for entry in timeseries:
            if not isinstance(entry, dict) or not entry.get("time"):
                continue
            try:
                hour = floorToHour(datetime.datetime.fromisoformat(str(entry["time"])))
            except ValueError:
                logger.warning(f"Skipping unparsable Met.no time {entry['time']!r}")
                continue

            details: Any = entry.get("data")
            for key in ("instant", "details"):
                details = details.get(key) if isinstance(details, dict) else None
            if not isinstance(details, dict):
                details = {}
            values = {band: toPercent(details.get(field)) for band, field in DETAIL_FIELDS.items()}
            samples.append(CloudSample(time=hour, provider=self.providerName, **values))

        logger.debug(f"Parsed {len(samples)} Met.no samples, dood!")
        return samples
