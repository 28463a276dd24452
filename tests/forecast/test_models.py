"""
Tests for forecast models and configuration objects, dood!
"""

import datetime

import pytest

from internal.forecast import (
    Coordinate,
    ForecastConfig,
    ForecastSeries,
    GeocodeResult,
    InvalidInputError,
    ProviderConfig,
    ProviderDiff,
    PublicLookupConfig,
)
from tests.utils import hourAt, makeCandidate, makeSample

CORK = Coordinate(51.8986, -8.4756)


# ============================================================================
# Coordinate
# ============================================================================


class TestCoordinate:
    """Test coordinate validation and parsing."""

    def testBoundsAreInclusive(self):
        assert Coordinate(90, 180) == Coordinate(90.0, 180.0)
        assert Coordinate(-90, -180).latitude == -90.0

    @pytest.mark.parametrize(
        "latitude, longitude, field",
        [
            (90.0001, 0, "latitude"),
            (0, -180.5, "longitude"),
            (float("nan"), 0, "latitude"),
            (0, float("inf"), "longitude"),
            (True, 0, "latitude"),
            ("51.9", 0, "latitude"),
            (None, 0, "latitude"),
        ],
    )
    def testRejected(self, latitude, longitude, field):
        with pytest.raises(InvalidInputError) as excInfo:
            Coordinate(latitude, longitude)

        assert excInfo.value.field == field

    def testParseAcceptsNumericStrings(self):
        assert Coordinate.parse(" 51.8986", "-8.4756 ") == CORK
        assert Coordinate.parse(51.8986, -8.4756) == CORK

    @pytest.mark.parametrize("latitude, longitude", [("", "1"), ("1", None), ("north", "1"), ("1", "1e999")])
    def testParseRejects(self, latitude, longitude):
        with pytest.raises(InvalidInputError):
            Coordinate.parse(latitude, longitude)

    def testRounded(self):
        assert Coordinate(51.898611, -8.475589).rounded(4) == CORK
        assert Coordinate(51.898611, -8.475589).rounded(2) == Coordinate(51.9, -8.48)

    def testRoundedDropsNegativeZero(self):
        rounded = Coordinate(-0.00001, -0.00004).rounded(4)

        assert str(rounded.latitude) == "0.0"
        assert str(rounded.longitude) == "0.0"


# ============================================================================
# GeocodeResult
# ============================================================================


class TestGeocodeResult:
    """Test candidate validation and display names."""

    def testFromCandidate(self):
        result = GeocodeResult.fromCandidate(makeCandidate(" Cork ", 51.89797, -8.47061, admin1="Munster"))

        assert result.name == "Cork"
        assert result.coordinate == Coordinate(51.89797, -8.47061)
        assert result.timezone == "Europe/Dublin"
        assert result.displayName == "Cork, Munster, Ireland"

    def testDisplayNameSkipsEmptyAndRepeatedParts(self):
        result = GeocodeResult(name="Dublin", coordinate=Coordinate(53.3, -6.2), country="Dublin")

        assert result.displayName == "Dublin"

    def testRoundTrip(self):
        result = GeocodeResult.fromCandidate(makeCandidate("Cork", 51.89797, -8.47061, admin1="Munster"))

        assert GeocodeResult.fromDict(result.toDict()) == result


# ============================================================================
# ForecastSeries
# ============================================================================


class TestForecastSeries:
    """Test sample ordering and summaries."""

    def testTimesMustIncrease(self):
        with pytest.raises(ValueError):
            ForecastSeries(coordinate=CORK, requestedHours=2, samples=(makeSample(1), makeSample(0)))

        with pytest.raises(ValueError):
            ForecastSeries(coordinate=CORK, requestedHours=2, samples=(makeSample(0), makeSample(0)))

    def testAveragesIgnoreMissingValues(self):
        series = ForecastSeries(
            coordinate=CORK,
            requestedHours=3,
            samples=(
                makeSample(0, total=10, low=None, medium=None),
                makeSample(1, total=21, low=40, medium=None),
                makeSample(2, total=30, low=None, medium=None),
            ),
        )

        averages = series.averages()

        assert averages["total"] == 20
        assert averages["low"] == 40
        assert averages["medium"] is None
        assert averages["high"] == 30
        assert averages["hours"] == 3
        assert averages["firstTime"] == hourAt(0).isoformat()
        assert averages["lastTime"] == hourAt(2).isoformat()

    def testEmptyAverages(self):
        averages = ForecastSeries(coordinate=CORK, requestedHours=3, samples=()).averages()

        assert averages["total"] is None
        assert averages["firstTime"] is None

    def testDictRoundTrip(self):
        series = ForecastSeries(
            coordinate=CORK,
            requestedHours=4,
            samples=(makeSample(0).withBands({"medium": 22}, ("medium",)), makeSample(1, provider="secondary")),
            providers=("primary", "secondary"),
            secondaryOnly=False,
            diffs=(ProviderDiff(hourAt(0), "total", 90, 20),),
            generatedAt=datetime.datetime(2025, 1, 15, 12, 20, tzinfo=datetime.timezone.utc),
        )

        restored = ForecastSeries.fromDict(series.toDict())

        assert restored == series
        assert restored.samples[0].backfilled == ("medium",)
        assert restored.diffs[0].difference == 70


# ============================================================================
# Configuration
# ============================================================================


class TestForecastConfig:
    """Test [forecast] section parsing."""

    def testDefaults(self):
        config = ForecastConfig.fromDict({})

        assert config == ForecastConfig()
        assert config.weatherTtl == 900
        assert config.geocodingTtl == 86400
        assert config.defaultCoordinate == CORK

    def testFromDict(self):
        config = ForecastConfig.fromDict(
            {
                "default-lat": 40.7,
                "default-lon": -74,
                "default-hours": "24",
                "max-hours": 72,
                "weather-ttl": "15m",
                "geocoding-ttl": "1d",
                "astronomy-ttl": 3600,
                "coordinate-precision": 3,
                "geocoding-limit": 3,
                "diff-threshold": 25,
                "collapse-concurrent-misses": False,
            }
        )

        assert config.defaultCoordinate == Coordinate(40.7, -74)
        assert config.defaultHours == 24
        assert config.maxHours == 72
        assert (config.weatherTtl, config.geocodingTtl, config.astronomyTtl) == (900, 86400, 3600)
        assert config.coordinatePrecision == 3
        assert config.geocodingLimit == 3
        assert config.diffThreshold == 25
        assert config.collapseConcurrentMisses is False

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"maxHours": 0},
            {"defaultHours": 200},
            {"weatherTtl": -1},
            {"coordinatePrecision": 9},
            {"geocodingLimit": 0},
        ],
    )
    def testInvalid(self, kwargs):
        with pytest.raises(ValueError):
            ForecastConfig(**kwargs)

    def testInvalidDefaultCoordinate(self):
        with pytest.raises(InvalidInputError):
            ForecastConfig(defaultLatitude=100)


class TestPublicLookupConfig:
    """Test [public-lookup] section parsing."""

    def testDefaults(self):
        config = PublicLookupConfig.fromDict({})

        assert (config.maxRequests, config.windowSeconds) == (5, 60)

    def testToQueueConfig(self):
        queueConfig = PublicLookupConfig.fromDict({"max-requests": 10, "window-seconds": "2m"}).toQueueConfig()

        assert queueConfig.maxRequests == 10
        assert queueConfig.windowSeconds == 120


class TestProviderConfig:
    """Test [providers.<name>] section parsing."""

    def testEmptyKeepsClientDefaults(self):
        config = ProviderConfig.fromDict({})

        assert config.clientKwargs() == {"requestTimeout": None, "baseUrl": None}
        assert config.apiKey is None

    def testFromDict(self):
        config = ProviderConfig.fromDict(
            {"timeout": 5, "user-agent": "cloud-forecast/1.0", "base-url": "http://localhost", "api-key": "secret"}
        )

        assert config.apiKey == "secret"
        assert config.clientKwargs() == {
            "requestTimeout": 5.0,
            "baseUrl": "http://localhost",
            "userAgent": "cloud-forecast/1.0",
        }

    def testEmptyApiKeyIsUnset(self):
        assert ProviderConfig.fromDict({"api-key": ""}).apiKey is None
