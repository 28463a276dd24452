"""
Forecast service errors, dood!

Every failure reaches the caller as one of these (or as a provider error from
lib.providers), never as an empty or zeroed forecast.
"""

from typing import Optional


class ForecastError(Exception):
    """Base class for forecast service errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidInputError(ForecastError):
    """Bad coordinate, hour count or query, rejected before any network call, dood!"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class ForecastUnavailableError(ForecastError):
    """Neither weather provider delivered usable data, dood!"""

    def __init__(
        self,
        primaryError: Optional[BaseException] = None,
        secondaryError: Optional[BaseException] = None,
        message: str = "No weather provider returned forecast data",
    ):
        self.primaryError = primaryError
        self.secondaryError = secondaryError
        super().__init__(message)


class GeocodingUnavailableError(ForecastError):
    """Geocoding provider could not be reached, as opposed to finding nothing."""

    def __init__(self, query: str, cause: Optional[BaseException] = None):
        self.query = query
        self.cause = cause
        super().__init__(f"Geocoding service unavailable for '{query}'")


class LocationNotFoundError(ForecastError):
    """Query resolved to zero locations."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"Location '{query}' not found")


class RateLimitedError(ForecastError):
    """Caller exceeded the public lookup request ceiling, dood!"""

    def __init__(self, retryAfter: int):
        self.retryAfter = retryAfter
        super().__init__(f"Too many requests, retry in {retryAfter} seconds")
