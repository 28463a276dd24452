"""
Tests for user facing error messages, dood!
"""

import pytest

from internal.forecast import (
    Coordinate,
    ForecastSeries,
    ForecastUnavailableError,
    GeocodingUnavailableError,
    InvalidInputError,
    LocationNotFoundError,
    RateLimitedError,
)
from internal.forecast.messages import SECONDARY_ONLY_NOTE, describeError, describeSeries, errorCode, formatDuration
from lib.providers import ProviderDisabledError, ProviderRateLimitedError, TransportError

ALL_ERRORS = [
    RateLimitedError(65),
    InvalidInputError("latitude must be a number"),
    LocationNotFoundError("Atlantis"),
    GeocodingUnavailableError("Cork", TransportError("open-meteo-geocoding", "request timeout")),
    ForecastUnavailableError(),
    ProviderDisabledError("ipgeolocation"),
    ProviderRateLimitedError("met-no", 120),
    TransportError("met-no", "HTTP status 502", 502),
    RuntimeError("boom"),
]


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "0 seconds"),
        (1, "1 second"),
        (50, "50 seconds"),
        (60, "1 minute"),
        (65, "1 minute 5 seconds"),
        (150, "2 minutes 30 seconds"),
        (-5, "0 seconds"),
    ],
)
def testFormatDuration(seconds, expected):
    assert formatDuration(seconds) == expected


def testEveryErrorHasOwnCode():
    codes = [errorCode(error) for error in ALL_ERRORS]

    assert codes == [
        "rate_limited",
        "invalid_input",
        "location_not_found",
        "geocoding_unavailable",
        "forecast_unavailable",
        "disabled",
        "provider_rate_limited",
        "transport_failure",
        "internal_error",
    ]


def testEveryErrorHasOwnMessage():
    messages = [describeError(error) for error in ALL_ERRORS]

    assert len(set(messages)) == len(ALL_ERRORS)


def testRateLimitMessageIncludesRetryAfter():
    assert "1 minute 5 seconds" in describeError(RateLimitedError(65))


def testMessagesContent():
    assert describeError(InvalidInputError("hours must be positive")) == "Invalid input: hours must be positive."
    assert "Atlantis" in describeError(LocationNotFoundError("Atlantis"))
    assert "met-no" in describeError(ProviderRateLimitedError("met-no", 120))
    assert "2 minutes" in describeError(ProviderRateLimitedError("met-no", 120))


def testDescribeSeries():
    def series(secondaryOnly: bool) -> ForecastSeries:
        return ForecastSeries(coordinate=Coordinate(0, 0), requestedHours=1, samples=(), secondaryOnly=secondaryOnly)

    assert describeSeries(series(False)) is None
    assert describeSeries(series(True)) == SECONDARY_ONLY_NOTE
