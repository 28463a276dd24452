"""
Test utility functions and helpers.

This module provides a controllable clock, provider doubles and helpers for
building hourly samples and geocoding candidates.
"""

import asyncio
import datetime
from typing import Any, Dict, List, Optional, Sequence

from lib.providers import CloudSample, GeocodeCandidate, ProviderError

UTC = datetime.timezone.utc

# 2025-01-15 12:20 UTC, forecasts start at 12:00
NOW = datetime.datetime(2025, 1, 15, 12, 20, tzinfo=UTC)
START_HOUR = datetime.datetime(2025, 1, 15, 12, tzinfo=UTC)


# ============================================================================
# Sample Creation Utilities
# ============================================================================


def hourAt(offset: int) -> datetime.datetime:
    """Start of the hour ``offset`` hours after the current one."""
    return START_HOUR + datetime.timedelta(hours=offset)


def makeSample(
    offset: int,
    total: Optional[int] = 50,
    low: Optional[int] = 10,
    medium: Optional[int] = 20,
    high: Optional[int] = 30,
    provider: str = "primary",
) -> CloudSample:
    """Create a CloudSample ``offset`` hours from now."""
    return CloudSample(time=hourAt(offset), total=total, low=low, medium=medium, high=high, provider=provider)


def makeCandidate(
    name: str,
    latitude: Any,
    longitude: Any,
    country: str = "Ireland",
    admin1: str = "",
) -> GeocodeCandidate:
    """Create a geocoding candidate as returned by a provider client."""
    return {
        "name": name,
        "latitude": latitude,
        "longitude": longitude,
        "country": country,
        "admin1": admin1,
        "admin2": "",
        "timezone": "Europe/Dublin",
    }


# ============================================================================
# Doubles
# ============================================================================


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: datetime.datetime = NOW):
        self.now = start.timestamp()

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeForecastProvider:
    """
    Weather provider double.

    Returns ``samples`` or raises ``error``. When ``gate`` is set, the fetch
    waits for it, which lets tests hold several requests in flight.
    """

    def __init__(
        self,
        providerName: str,
        samples: Sequence[CloudSample] = (),
        error: Optional[ProviderError] = None,
    ):
        self.providerName = providerName
        self.samples = list(samples)
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.gate: Optional[asyncio.Event] = None
        self.cancelled = 0

    async def fetchHourly(self, lat: float, lon: float, hours: int) -> List[CloudSample]:
        self.calls.append({"lat": lat, "lon": lon, "hours": hours})
        if self.gate is not None:
            try:
                await self.gate.wait()
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if self.error is not None:
            raise self.error
        return list(self.samples)


class FakeGeocodingProvider:
    """Geocoding provider double keyed by query."""

    providerName = "fake-geocoding"

    def __init__(
        self,
        results: Optional[Dict[str, List[GeocodeCandidate]]] = None,
        error: Optional[ProviderError] = None,
    ):
        self.results = results or {}
        self.error = error
        self.calls: List[str] = []

    async def search(self, query: str, limit: int = 5, language: str = "en") -> List[GeocodeCandidate]:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        return list(self.results.get(query, []))
