"""
Forecast module: geocoding, two-provider merge and cached aggregation
"""

from .errors import (
    ForecastError,
    ForecastUnavailableError,
    GeocodingUnavailableError,
    InvalidInputError,
    LocationNotFoundError,
    RateLimitedError,
)
from .factory import buildCaches, createAggregationService, createLookupHandler
from .geocoder import Geocoder
from .lookup import LookupResponse, PublicLookupHandler
from .merger import ForecastMerger
from .messages import describeError
from .models import (
    Coordinate,
    ForecastConfig,
    ForecastSeries,
    GeocodeResult,
    ProviderConfig,
    ProviderDiff,
    PublicLookupConfig,
)
from .service import AggregationService

__all__ = [
    "AggregationService",
    "ForecastMerger",
    "Geocoder",
    "PublicLookupHandler",
    "LookupResponse",
    "Coordinate",
    "ForecastConfig",
    "ForecastSeries",
    "GeocodeResult",
    "ProviderConfig",
    "ProviderDiff",
    "PublicLookupConfig",
    "ForecastError",
    "ForecastUnavailableError",
    "GeocodingUnavailableError",
    "InvalidInputError",
    "LocationNotFoundError",
    "RateLimitedError",
    "describeError",
    "buildCaches",
    "createAggregationService",
    "createLookupHandler",
]
