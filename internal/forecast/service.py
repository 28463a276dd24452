"""
Aggregation service: single entry point for forecasts, dood!

Request flow:
    resolve location (skipped for coordinates) -> check cache ->
    hit: return cached series
    miss: fetch and merge -> store -> return
Failures are never cached, so the next request goes upstream again.
"""

import asyncio
import datetime
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from lib.cache import DEFAULT_CLOCK, CacheInterface, CacheVersionInterface, Clock, NullCache
from lib.providers import AstronomyData, IpGeolocationClient, ProviderDisabledError

from .errors import InvalidInputError, LocationNotFoundError
from .geocoder import Geocoder
from .merger import ForecastMerger
from .models import Coordinate, ForecastConfig, ForecastSeries, GeocodeResult

logger = logging.getLogger(__name__)

ForecastTarget = Coordinate | GeocodeResult | str


@dataclass
class InflightFetch:
    """Upstream fetch shared by every caller that missed the same key."""

    task: asyncio.Task
    waiters: int = 0


class AggregationService:
    """
    Orchestrates geocoder, merger and caches, dood!

    All caches should share ``cacheVersion`` so that ``clearCache`` drops
    everything with a single bump.

    Args:
        config: Aggregation settings
        merger: Two-provider forecast merger
        geocoder: Location resolver
        weatherCache: Cache for merged series, keyed by ``weatherCacheKey``
        cacheVersion: Global version shared by all caches
        astronomyProvider: Optional astronomy client, disabled without API key
        astronomyCache: Cache for astronomy data
        clock: Wall-clock source
    """

    def __init__(
        self,
        config: ForecastConfig,
        merger: ForecastMerger,
        geocoder: Geocoder,
        weatherCache: CacheInterface[str, ForecastSeries],
        cacheVersion: CacheVersionInterface,
        astronomyProvider: Optional[IpGeolocationClient] = None,
        astronomyCache: Optional[CacheInterface[str, AstronomyData]] = None,
        clock: Clock = DEFAULT_CLOCK,
    ):
        self.config = config
        self.merger = merger
        self.geocoder = geocoder
        self.weatherCache = weatherCache
        self.cacheVersion = cacheVersion
        self.astronomyProvider = astronomyProvider
        self.astronomyCache: CacheInterface[str, AstronomyData] = (
            astronomyCache if astronomyCache is not None else NullCache()
        )
        self._clock = clock
        self._inflight: Dict[str, InflightFetch] = {}

    # ------------------------------------------------------------------
    # Validation and keys
    # ------------------------------------------------------------------

    def validateHours(self, requestedHours: Any) -> int:
        """
        Check hour count, None means the configured default, dood!

        Raises:
            InvalidInputError: Not an integer in ``1..maxHours``
        """
        if requestedHours is None:
            return self.config.defaultHours
        if isinstance(requestedHours, str) and requestedHours.strip().isdigit():
            requestedHours = int(requestedHours.strip())
        if isinstance(requestedHours, bool) or not isinstance(requestedHours, int):
            raise InvalidInputError(f"hours must be an integer, got {requestedHours!r}", field="hours")
        if not 1 <= requestedHours <= self.config.maxHours:
            raise InvalidInputError(f"hours must be between 1 and {self.config.maxHours}", field="hours")
        return requestedHours

    def weatherCacheKey(self, coordinate: Coordinate, requestedHours: int) -> str:
        """Key like ``weather:51.8986:-8.4756:48:open-meteo+met-no``."""
        precision = self.config.coordinatePrecision
        return (
            f"weather:{coordinate.latitude:.{precision}f}:{coordinate.longitude:.{precision}f}:"
            f"{requestedHours}:{self.merger.providerSet}"
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def geocode(self, query: str) -> List[GeocodeResult]:
        """Location candidates for query (empty if nothing found)."""
        return await self.geocoder.resolve(query)

    async def resolveLocation(self, query: str) -> GeocodeResult:
        """
        Best candidate for query, dood!

        Raises:
            LocationNotFoundError: Query matched nothing
            GeocodingUnavailableError: Geocoding provider failed
        """
        results = await self.geocoder.resolve(query)
        if not results:
            raise LocationNotFoundError(query)
        return results[0]

    async def getForecast(self, target: ForecastTarget, requestedHours: Optional[int] = None) -> ForecastSeries:
        """
        Merged forecast for coordinate, geocode result or location query, dood!

        Raises:
            InvalidInputError: Bad hours or query, before any network call
            LocationNotFoundError: Query matched nothing
            GeocodingUnavailableError: Query could not be resolved
            ForecastUnavailableError: No provider delivered data
        """
        hours = self.validateHours(requestedHours)

        match target:
            case Coordinate():
                coordinate = target
            case GeocodeResult():
                coordinate = target.coordinate
            case str():
                coordinate = (await self.resolveLocation(target)).coordinate
            case _:
                raise InvalidInputError(f"Unsupported forecast target {target!r}")

        coordinate = coordinate.rounded(self.config.coordinatePrecision)
        key = self.weatherCacheKey(coordinate, hours)

        cached = await self.weatherCache.get(key)
        if cached is not None:
            logger.debug(f"Forecast cache hit for {key}")
            return cached

        logger.debug(f"Forecast cache miss for {key}")
        if not self.config.collapseConcurrentMisses:
            return await self._fetchAndStore(key, coordinate, hours)
        return await self._fetchShared(key, coordinate, hours)

    async def getAstronomy(self, coordinate: Coordinate, date: Optional[datetime.date] = None) -> AstronomyData:
        """
        Moon and sun data for coordinate and date (today, UTC, by default), dood!

        Raises:
            ProviderDisabledError: No astronomy API key configured
            TransportError: Astronomy provider failed
        """
        if self.astronomyProvider is None or not self.astronomyProvider.enabled:
            raise ProviderDisabledError(IpGeolocationClient.providerName)

        if date is None:
            date = datetime.datetime.fromtimestamp(self._clock(), tz=datetime.timezone.utc).date()
        coordinate = coordinate.rounded(self.config.coordinatePrecision)
        precision = self.config.coordinatePrecision
        key = f"astronomy:{coordinate.latitude:.{precision}f}:{coordinate.longitude:.{precision}f}:{date.isoformat()}"

        cached = await self.astronomyCache.get(key)
        if cached is not None:
            logger.debug(f"Astronomy cache hit for {key}")
            return cached

        data = await self.astronomyProvider.fetchAstronomy(coordinate.latitude, coordinate.longitude, date)
        await self.astronomyCache.set(key, data, ttl=self.config.astronomyTtl)
        return data

    async def clearCache(self) -> int:
        """Invalidate every cached forecast, geocode and astronomy entry. Returns the new version."""
        newVersion = self.cacheVersion.bump()
        logger.info(f"Forecast caches cleared, version is now {newVersion}, dood!")
        return newVersion

    def getStats(self) -> Dict[str, Any]:
        return {
            "cacheVersion": self.cacheVersion.current(),
            "inflightFetches": len(self._inflight),
            "weatherCache": self.weatherCache.getStats(),
            "geocodingCache": self.geocoder.cache.getStats(),
            "astronomyCache": self.astronomyCache.getStats(),
            "astronomyEnabled": bool(self.astronomyProvider is not None and self.astronomyProvider.enabled),
        }

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _fetchAndStore(self, key: str, coordinate: Coordinate, hours: int) -> ForecastSeries:
        series = await self.merger.merge(coordinate, hours)
        await self.weatherCache.set(key, series, ttl=self.config.weatherTtl)
        return series

    async def _fetchShared(self, key: str, coordinate: Coordinate, hours: int) -> ForecastSeries:
        """
        Join the in-flight fetch for key or start one, dood!

        The shared fetch is cancelled only when every waiter has given up.
        """
        inflight = self._inflight.get(key)
        if inflight is None:
            inflight = InflightFetch(asyncio.ensure_future(self._fetchAndStore(key, coordinate, hours)))
            self._inflight[key] = inflight
            inflight.task.add_done_callback(lambda _task, record=inflight: self._forgetInflight(key, record))
        else:
            logger.debug(f"Joining in-flight fetch for {key}")

        inflight.waiters += 1
        try:
            return await asyncio.shield(inflight.task)
        finally:
            inflight.waiters -= 1
            if inflight.waiters == 0 and not inflight.task.done():
                logger.debug(f"All callers left, cancelling fetch for {key}")
                inflight.task.cancel()
                self._forgetInflight(key, inflight)

    def _forgetInflight(self, key: str, record: InflightFetch) -> None:
        if self._inflight.get(key) is record:
            del self._inflight[key]
