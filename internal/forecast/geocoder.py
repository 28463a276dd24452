"""
Geocoder: free-text location to coordinate candidates with a cache in front, dood!
"""

import logging
from typing import List, Protocol

from lib.cache import CacheInterface
from lib.providers import GeocodeCandidate, ProviderError

from .errors import GeocodingUnavailableError, InvalidInputError
from .models import GeocodeResult

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 200


class GeocodingProvider(Protocol):
    providerName: str

    async def search(self, query: str, limit: int = 5, language: str = "en") -> List[GeocodeCandidate]: ...


def normalizeQuery(query: str) -> str:
    """Collapse whitespace and lowercase, so "  Cork,  Ireland" and "cork, ireland" share a cache entry."""
    return " ".join(query.split()).lower()


class Geocoder:
    """
    Resolves location queries, dood!

    An empty list means "not found"; GeocodingUnavailableError means the
    provider could not be asked. Only successful lookups are cached, empty
    results included.

    Args:
        provider: Geocoding provider client
        cache: Cache keyed by the normalized query
        ttl: Cache TTL in seconds
        limit: Maximum number of returned candidates
    """

    def __init__(
        self,
        provider: GeocodingProvider,
        cache: CacheInterface[str, List[GeocodeResult]],
        ttl: int,
        limit: int = 5,
    ):
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        self.provider = provider
        self.cache = cache
        self.ttl = ttl
        self.limit = limit

    async def resolve(self, query: str) -> List[GeocodeResult]:
        """
        Resolve query into at most ``limit`` candidates in provider order.

        Raises:
            InvalidInputError: Empty or overly long query
            GeocodingUnavailableError: Provider failed
        """
        normalized = normalizeQuery(query) if isinstance(query, str) else ""
        if not normalized:
            raise InvalidInputError("Location query must not be empty", field="location")
        if len(normalized) > MAX_QUERY_LENGTH:
            raise InvalidInputError(f"Location query is longer than {MAX_QUERY_LENGTH} characters", field="location")

        cached = await self.cache.get(normalized)
        if cached is not None:
            logger.debug(f"Geocoding cache hit for '{normalized}'")
            return list(cached)

        try:
            candidates = await self.provider.search(normalized, limit=self.limit)
        except ProviderError as e:
            logger.warning(f"Geocoding '{normalized}' failed: {e}")
            raise GeocodingUnavailableError(query, e) from e

        results: List[GeocodeResult] = []
        for candidate in candidates:
            try:
                results.append(GeocodeResult.fromCandidate(candidate))
            except InvalidInputError as e:
                logger.debug(f"Dropping malformed geocoding candidate {candidate!r}: {e}")
                continue
            if len(results) >= self.limit:
                break

        await self.cache.set(normalized, results, ttl=self.ttl)
        logger.debug(f"Geocoded '{normalized}' into {len(results)} candidates")
        return list(results)
