"""
Upstream provider clients, dood!

Each client translates its provider payload into canonical models
(CloudSample, GeocodeCandidate, AstronomyData) and reports failures
as ProviderError subclasses.
"""

from .base import DEFAULT_USER_AGENT, BaseProviderClient
from .exceptions import ProviderDisabledError, ProviderError, ProviderRateLimitedError, TransportError
from .ipgeolocation import IpGeolocationClient
from .met_no import MetNoClient
from .models import CLOUD_BANDS, AstronomyData, CloudSample, GeocodeCandidate, toPercent
from .open_meteo import OpenMeteoForecastClient, OpenMeteoGeocodingClient

__all__ = [
    "DEFAULT_USER_AGENT",
    "BaseProviderClient",
    "ProviderError",
    "TransportError",
    "ProviderRateLimitedError",
    "ProviderDisabledError",
    "OpenMeteoForecastClient",
    "OpenMeteoGeocodingClient",
    "MetNoClient",
    "IpGeolocationClient",
    "CLOUD_BANDS",
    "CloudSample",
    "GeocodeCandidate",
    "AstronomyData",
    "toPercent",
]
