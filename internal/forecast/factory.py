"""
Wiring of the forecast service from configuration, dood!
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from internal.config.manager import ConfigManager
from lib.cache import (
    DEFAULT_CLOCK,
    CacheInterface,
    CacheVersionInterface,
    Clock,
    DictCache,
    HashKeyGenerator,
    InMemoryCacheVersion,
    NullCache,
    SqliteCache,
    SqliteCacheVersion,
    SqliteStorage,
    StringKeyGenerator,
)
from lib.providers import IpGeolocationClient, MetNoClient, OpenMeteoForecastClient, OpenMeteoGeocodingClient
from lib.rate_limiter import RateLimiterManager, SlidingWindowRateLimiter

from .converters import ForecastSeriesConverter, GeocodeResultsConverter
from .geocoder import Geocoder
from .lookup import PublicLookupHandler
from .merger import ForecastMerger
from .models import ForecastConfig, ForecastSeries, GeocodeResult, ProviderConfig, PublicLookupConfig
from .service import AggregationService

logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = os.path.join("var", "forecast-cache.db")


@dataclass
class ForecastCaches:
    """Caches of one backend sharing a single version counter."""

    version: CacheVersionInterface
    weather: CacheInterface[str, ForecastSeries]
    geocoding: CacheInterface[str, List[GeocodeResult]]
    astronomy: CacheInterface[str, Any]
    storage: Optional[SqliteStorage] = None


def buildCaches(
    cacheConfig: Dict[str, Any],
    forecastConfig: ForecastConfig,
    clock: Clock = DEFAULT_CLOCK,
) -> ForecastCaches:
    """
    Create caches for the configured backend, dood!

    Raises:
        ValueError: Unknown backend
    """
    backend = str(cacheConfig.get("backend", "memory")).lower()
    logger.info(f"Using {backend} cache backend")

    match backend:
        case "memory":
            version: CacheVersionInterface = InMemoryCacheVersion()
            maxSize = int(cacheConfig.get("max-size", 1000))
            return ForecastCaches(
                version=version,
                weather=DictCache(StringKeyGenerator(), forecastConfig.weatherTtl, maxSize, version, clock),
                geocoding=DictCache(
                    HashKeyGenerator("geocoding:"), forecastConfig.geocodingTtl, maxSize, version, clock
                ),
                astronomy=DictCache(StringKeyGenerator(), forecastConfig.astronomyTtl, maxSize, version, clock),
            )
        case "sqlite":
            storage = SqliteStorage(str(cacheConfig.get("path", DEFAULT_SQLITE_PATH)))
            version = SqliteCacheVersion(storage)
            return ForecastCaches(
                version=version,
                weather=SqliteCache(
                    storage,
                    "weather",
                    keyGenerator=StringKeyGenerator(),
                    valueConverter=ForecastSeriesConverter(),
                    defaultTtl=forecastConfig.weatherTtl,
                    version=version,
                    clock=clock,
                ),
                geocoding=SqliteCache(
                    storage,
                    "geocoding",
                    keyGenerator=HashKeyGenerator("geocoding:"),
                    valueConverter=GeocodeResultsConverter(),
                    defaultTtl=forecastConfig.geocodingTtl,
                    version=version,
                    clock=clock,
                ),
                astronomy=SqliteCache(
                    storage,
                    "astronomy",
                    keyGenerator=StringKeyGenerator(),
                    defaultTtl=forecastConfig.astronomyTtl,
                    version=version,
                    clock=clock,
                ),
                storage=storage,
            )
        case "null" | "none" | "disabled":
            return ForecastCaches(
                version=InMemoryCacheVersion(),
                weather=NullCache(),
                geocoding=NullCache(),
                astronomy=NullCache(),
            )
        case _:
            raise ValueError(f"Unknown cache backend '{backend}'")


async def createAggregationService(configManager: ConfigManager, clock: Clock = DEFAULT_CLOCK) -> AggregationService:
    """
    Build AggregationService with providers, caches and outbound rate limits, dood!
    """
    await RateLimiterManager.getInstance().loadConfig(configManager.getRateLimiterConfig())

    forecastConfig = ForecastConfig.fromDict(configManager.getForecastConfig())
    caches = buildCaches(configManager.getCacheConfig(), forecastConfig, clock)

    def providerKwargs(name: str) -> Dict[str, Any]:
        return ProviderConfig.fromDict(configManager.getProviderConfig(name)).clientKwargs()

    merger = ForecastMerger(
        primary=OpenMeteoForecastClient(rateLimiterQueue="open-meteo", **providerKwargs("open-meteo")),
        secondary=MetNoClient(rateLimiterQueue="met-no", **providerKwargs("met-no")),
        diffThreshold=forecastConfig.diffThreshold,
        clock=clock,
    )
    geocoder = Geocoder(
        OpenMeteoGeocodingClient(rateLimiterQueue="open-meteo-geocoding", **providerKwargs("open-meteo-geocoding")),
        caches.geocoding,
        ttl=forecastConfig.geocodingTtl,
        limit=forecastConfig.geocodingLimit,
    )
    astronomyConfig = ProviderConfig.fromDict(configManager.getProviderConfig("ipgeolocation"))
    astronomyProvider = IpGeolocationClient(
        apiKey=astronomyConfig.apiKey,
        rateLimiterQueue="ipgeolocation",
        **astronomyConfig.clientKwargs(),
    )
    if not astronomyProvider.enabled:
        logger.info("Astronomy provider disabled: no ipgeolocation api-key configured")

    return AggregationService(
        config=forecastConfig,
        merger=merger,
        geocoder=geocoder,
        weatherCache=caches.weather,
        cacheVersion=caches.version,
        astronomyProvider=astronomyProvider,
        astronomyCache=caches.astronomy,
        clock=clock,
    )


async def createLookupHandler(
    service: AggregationService, configManager: ConfigManager, clock: Clock = DEFAULT_CLOCK
) -> PublicLookupHandler:
    """Build the rate limited public lookup boundary for service."""
    lookupConfig = PublicLookupConfig.fromDict(configManager.getPublicLookupConfig())
    limiter = SlidingWindowRateLimiter(lookupConfig.toQueueConfig(), clock=clock)
    await limiter.initialize()
    return PublicLookupHandler(service, limiter)
