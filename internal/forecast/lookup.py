"""
Public lookup boundary: rate limiting and validation in front of the service, dood!
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from lib.providers import ProviderError
from lib.rate_limiter import RateLimiterInterface, resolveClientIdentity

from .errors import ForecastError, InvalidInputError, RateLimitedError
from .messages import describeError, describeSeries, errorCode
from .models import Coordinate, ForecastSeries, GeocodeResult
from .service import AggregationService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupResponse:
    """Outcome of a public lookup, ready for rendering."""

    ok: bool
    series: Optional[ForecastSeries] = None
    location: Optional[GeocodeResult] = None
    message: str = ""
    retryAfter: int = 0
    errorCode: str = ""

    @classmethod
    def failure(cls, error: BaseException) -> "LookupResponse":
        return cls(
            ok=False,
            message=describeError(error),
            retryAfter=getattr(error, "retryAfter", 0),
            errorCode=errorCode(error),
        )

    def toDict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"ok": self.ok, "message": self.message}
        if self.series is not None:
            result["forecast"] = self.series.toDict()
            result["summary"] = self.series.averages()
        if self.location is not None:
            result["location"] = self.location.toDict()
        if not self.ok:
            result["error"] = self.errorCode
            if self.retryAfter:
                result["retryAfter"] = self.retryAfter
        return result


class PublicLookupHandler:
    """
    Handles untrusted public forecast lookups, dood!

    Each client identity gets its own sliding window. Rejected attempts are
    not counted. Validation happens before any upstream call.

    Args:
        service: Aggregation service
        limiter: Per-identity limiter, queues are client identities
    """

    def __init__(self, service: AggregationService, limiter: RateLimiterInterface):
        self.service = service
        self.limiter = limiter

    async def lookup(
        self,
        headers: Mapping[str, str],
        remoteAddr: Optional[str] = None,
        *,
        latitude: Any = None,
        longitude: Any = None,
        location: Optional[str] = None,
        hours: Any = None,
    ) -> LookupResponse:
        """
        Forecast for a location query or a coordinate pair.

        Args:
            headers: Request headers, used to find the client address
            remoteAddr: Socket peer address
            latitude: Latitude, number or numeric string
            longitude: Longitude, number or numeric string
            location: Free text location, takes precedence over coordinates
            hours: Requested horizon, default from config
        """
        identity = resolveClientIdentity(headers, remoteAddr)
        limit = await self.limiter.checkAndRecord(identity)
        if not limit.allowed:
            logger.info(f"Public lookup from {identity} rate limited for {limit.retryAfter}s")
            return LookupResponse.failure(RateLimitedError(limit.retryAfter))

        try:
            requestedHours = self.service.validateHours(hours)
            resolved: Optional[GeocodeResult] = None
            if location is not None and location.strip():
                resolved = await self.service.resolveLocation(location)
                target: Coordinate | GeocodeResult = resolved
            elif latitude is None and longitude is None:
                raise InvalidInputError("either a location or latitude and longitude are required")
            else:
                target = Coordinate.parse(latitude, longitude)

            series = await self.service.getForecast(target, requestedHours)
        except (ForecastError, ProviderError) as e:
            logger.debug(f"Public lookup from {identity} failed: {e}")
            return LookupResponse.failure(e)

        return LookupResponse(ok=True, series=series, location=resolved, message=describeSeries(series) or "")
