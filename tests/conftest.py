"""
Pytest configuration and common fixtures for forecast service tests.

Provides a controllable clock, provider doubles and a ready AggregationService
wired with in-memory caches. All fixtures follow camelCase naming convention.
"""

from typing import Optional

import pytest

from internal.forecast import AggregationService, ForecastConfig, ForecastMerger, Geocoder
from lib.cache import DictCache, HashKeyGenerator, InMemoryCacheVersion, StringKeyGenerator
from lib.rate_limiter import RateLimiterManager
from tests.utils import FakeClock, FakeForecastProvider, FakeGeocodingProvider, makeCandidate, makeSample

# ============================================================================
# Pytest Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def resetRateLimiterManager():
    """Give every test a fresh RateLimiterManager singleton."""
    RateLimiterManager._instance = None
    yield
    RateLimiterManager._instance = None


# ============================================================================
# Provider Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def primaryProvider() -> FakeForecastProvider:
    """Six hours of complete primary data, total = 40..45."""
    return FakeForecastProvider("primary", [makeSample(i, total=40 + i) for i in range(6)])


@pytest.fixture
def secondaryProvider() -> FakeForecastProvider:
    """Six hours of secondary data close to the primary values."""
    return FakeForecastProvider(
        "secondary",
        [makeSample(i, total=38 + i, low=12, medium=22, high=28, provider="secondary") for i in range(6)],
    )


@pytest.fixture
def geocodingProvider() -> FakeGeocodingProvider:
    return FakeGeocodingProvider(
        {
            "cork": [
                makeCandidate("Cork", 51.89797, -8.47061, admin1="Munster"),
                makeCandidate("Cork", 50.0, "north"),
                makeCandidate("Corkagh", 53.3, -6.4),
            ],
            "cork, ireland": [makeCandidate("Cork", 51.89797, -8.47061, admin1="Munster")],
        }
    )


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def forecastConfig() -> ForecastConfig:
    return ForecastConfig(defaultHours=6, maxHours=48)


@pytest.fixture
def cacheVersion() -> InMemoryCacheVersion:
    return InMemoryCacheVersion()


@pytest.fixture
def makeService(clock, primaryProvider, secondaryProvider, geocodingProvider, forecastConfig, cacheVersion):
    """Factory building an AggregationService around the provider doubles."""

    def factory(config: Optional[ForecastConfig] = None) -> AggregationService:
        config = config or forecastConfig
        merger = ForecastMerger(primaryProvider, secondaryProvider, diffThreshold=config.diffThreshold, clock=clock)
        geocoder = Geocoder(
            geocodingProvider,
            DictCache(HashKeyGenerator("geocoding:"), config.geocodingTtl, version=cacheVersion, clock=clock),
            ttl=config.geocodingTtl,
            limit=config.geocodingLimit,
        )
        return AggregationService(
            config=config,
            merger=merger,
            geocoder=geocoder,
            weatherCache=DictCache(StringKeyGenerator(), config.weatherTtl, version=cacheVersion, clock=clock),
            cacheVersion=cacheVersion,
            clock=clock,
        )

    return factory


@pytest.fixture
def service(makeService) -> AggregationService:
    return makeService()
