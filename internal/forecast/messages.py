"""
User facing messages for forecast errors, dood!

Every failure kind maps to its own message so that "not found", "could not
check" and "try later" never look alike.
"""

from typing import Optional

from lib.providers import ProviderDisabledError, ProviderRateLimitedError, TransportError

from .errors import (
    ForecastUnavailableError,
    GeocodingUnavailableError,
    InvalidInputError,
    LocationNotFoundError,
    RateLimitedError,
)
from .models import ForecastSeries

SECONDARY_ONLY_NOTE = "Primary forecast provider is unavailable, showing backup provider data with reduced confidence."


def formatDuration(seconds: int) -> str:
    """Format seconds like "1 minute 5 seconds"."""
    seconds = max(0, int(seconds))
    minutes, seconds = divmod(seconds, 60)
    parts = []
    if minutes:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    if seconds or not minutes:
        parts.append(f"{seconds} second{'s' if seconds != 1 else ''}")
    return " ".join(parts)


def errorCode(error: BaseException) -> str:
    """Short machine readable error kind."""
    match error:
        case RateLimitedError():
            return "rate_limited"
        case InvalidInputError():
            return "invalid_input"
        case LocationNotFoundError():
            return "location_not_found"
        case GeocodingUnavailableError():
            return "geocoding_unavailable"
        case ForecastUnavailableError():
            return "forecast_unavailable"
        case ProviderDisabledError():
            return "disabled"
        case ProviderRateLimitedError():
            return "provider_rate_limited"
        case TransportError():
            return "transport_failure"
        case _:
            return "internal_error"


def describeError(error: BaseException) -> str:
    """Human readable message for error, dood!"""
    match error:
        case RateLimitedError():
            return f"Too many requests. Please try again in {formatDuration(error.retryAfter)}."
        case InvalidInputError():
            return f"Invalid input: {error.message}."
        case LocationNotFoundError():
            return f'Location "{error.query}" not found. Try another spelling or enter coordinates.'
        case GeocodingUnavailableError():
            return "Location search is temporarily unavailable. Please try again later or enter coordinates."
        case ForecastUnavailableError():
            return "Cloud forecast is temporarily unavailable from all providers. Please try again later."
        case ProviderDisabledError():
            return "Astronomy data is not available: the provider is not configured."
        case ProviderRateLimitedError():
            return (
                f"Upstream request budget for {error.provider} is exhausted. "
                f"Please try again in {formatDuration(error.retryAfter)}."
            )
        case TransportError():
            return f"Upstream service {error.provider} is unavailable. Please try again later."
        case _:
            return "Something went wrong while preparing the forecast."


def describeSeries(series: ForecastSeries) -> Optional[str]:
    """Confidence note to show next to the series, None when nothing to note."""
    if series.secondaryOnly:
        return SECONDARY_ONLY_NOTE
    return None
