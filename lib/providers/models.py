"""
Canonical data shapes produced by provider clients, dood!

Provider-native field names never leave the client modules: every payload is
translated into these shapes right at the HTTP boundary.
"""

import datetime
import sys
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

if sys.version_info >= (3, 14):
    from typing import TypedDict
else:
    from typing_extensions import TypedDict

# Cloud layers in canonical order
CLOUD_BANDS: Tuple[str, ...] = ("total", "low", "medium", "high")


@dataclass(frozen=True)
class CloudSample:
    """
    One hour of cloud cover from a single provider, dood!

    Attributes:
        time: Start of the hour, UTC
        total: Total cloud cover percent (0-100) or None if the provider omitted it
        low: Low layer percent or None
        medium: Medium layer percent or None
        high: High layer percent or None
        provider: Origin tag of the sample
        backfilled: Bands filled in from another provider
    """

    time: datetime.datetime
    total: Optional[int] = None
    low: Optional[int] = None
    medium: Optional[int] = None
    high: Optional[int] = None
    provider: str = ""
    backfilled: Tuple[str, ...] = field(default_factory=tuple)

    def getBand(self, band: str) -> Optional[int]:
        if band not in CLOUD_BANDS:
            raise KeyError(f"Unknown cloud band: {band}")
        return getattr(self, band)

    def missingBands(self) -> Tuple[str, ...]:
        return tuple(band for band in CLOUD_BANDS if getattr(self, band) is None)

    def withBands(self, values: Dict[str, int], backfilled: Tuple[str, ...]) -> "CloudSample":
        """Return a copy with some bands replaced, dood!"""
        return replace(self, backfilled=self.backfilled + backfilled, **values)


def toPercent(value: Any) -> Optional[int]:
    """
    Normalize provider value into an integer percent, dood!

    Returns None for missing or non-numeric values, rounds and clamps to 0..100.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:  # NaN
        return None
    return max(0, min(100, int(round(number))))


class GeocodeCandidate(TypedDict):
    """
    Location candidate returned by a geocoding provider, dood!

    Coordinates are passed through as received; callers validate them.
    """

    name: str
    latitude: Any
    longitude: Any
    country: str
    admin1: str
    admin2: str
    timezone: str


class AstronomyData(TypedDict):
    """Astronomy data for a coordinate and date, dood!"""

    date: str
    moonPhase: str
    moonIllumination: Optional[float]
    moonrise: Optional[str]
    moonset: Optional[str]
    moonAzimuth: Optional[float]
    moonAltitude: Optional[float]
    sunrise: Optional[str]
    sunset: Optional[str]
    civilTwilightBegin: Optional[str]
    civilTwilightEnd: Optional[str]
    nauticalTwilightBegin: Optional[str]
    nauticalTwilightEnd: Optional[str]
    astronomicalTwilightBegin: Optional[str]
    astronomicalTwilightEnd: Optional[str]
