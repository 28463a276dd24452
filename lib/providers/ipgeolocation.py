"""
IPGeolocation astronomy client, dood!
"""

import datetime
import logging
from typing import Any, Dict, Optional

from .base import BaseProviderClient
from .exceptions import ProviderDisabledError, TransportError
from .models import AstronomyData

logger = logging.getLogger(__name__)


def _optionalStr(value: Any) -> Optional[str]:
    # API reports "-:-" for events that do not happen on that date
    if value is None or value in ("", "-:-"):
        return None
    return str(value)


def _optionalFloat(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class IpGeolocationClient(BaseProviderClient):
    """
    Optional astronomy provider, dood!

    Without an API key every call raises ProviderDisabledError and nothing
    is sent upstream.

    Example:
        >>> client = IpGeolocationClient(apiKey="key", rateLimiterQueue="ipgeolocation")
        >>> astro = await client.fetchAstronomy(51.8986, -8.4756, datetime.date(2025, 1, 15))
        >>> astro["moonPhase"]
        'WAXING_GIBBOUS'
    """

    providerName = "ipgeolocation"
    DEFAULT_BASE_URL = "https://api.ipgeolocation.io/astronomy"
    DEFAULT_TIMEOUT = 10

    def __init__(self, apiKey: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.apiKey = apiKey or None

    @property
    def enabled(self) -> bool:
        return self.apiKey is not None

    async def fetchAstronomy(self, lat: float, lon: float, date: datetime.date) -> AstronomyData:
        """
        Get moon phase, rise/set times and twilight bounds, dood!

        Raises:
            ProviderDisabledError: No API key configured
            TransportError: Request failed or payload is malformed
        """
        if not self.enabled:
            raise ProviderDisabledError(self.providerName)

        params = {
            "apiKey": self.apiKey,
            "lat": lat,
            "long": lon,
            "date": date.isoformat(),
        }

        responseData = await self._makeRequest(self.baseUrl, params)
        if not isinstance(responseData, dict):
            raise TransportError(self.providerName, "malformed response")

        # v2 responses nest everything under "astronomy"
        data: Dict[str, Any] = responseData.get("astronomy", responseData)
        morning: Dict[str, Any] = data.get("morning") or {}
        evening: Dict[str, Any] = data.get("evening") or {}

        def twilight(name: str, part: Dict[str, Any], suffix: str) -> Optional[str]:
            return _optionalStr(data.get(f"{name}_twilight_{suffix}", part.get(f"{name}_twilight_{suffix}")))

        illumination = data.get("moon_illumination_percentage", data.get("moon_illumination"))

        return {
            "date": str(data.get("date") or date.isoformat()),
            "moonPhase": str(data.get("moon_phase") or data.get("moon_phase_name") or "UNKNOWN"),
            "moonIllumination": _optionalFloat(illumination),
            "moonrise": _optionalStr(data.get("moonrise")),
            "moonset": _optionalStr(data.get("moonset")),
            "moonAzimuth": _optionalFloat(data.get("moon_azimuth")),
            "moonAltitude": _optionalFloat(data.get("moon_altitude")),
            "sunrise": _optionalStr(data.get("sunrise")),
            "sunset": _optionalStr(data.get("sunset")),
            "civilTwilightBegin": twilight("civil", morning, "begin"),
            "civilTwilightEnd": twilight("civil", evening, "end"),
            "nauticalTwilightBegin": twilight("nautical", morning, "begin"),
            "nauticalTwilightEnd": twilight("nautical", evening, "end"),
            "astronomicalTwilightBegin": twilight("astronomical", morning, "begin"),
            "astronomicalTwilightEnd": twilight("astronomical", evening, "end"),
        }
