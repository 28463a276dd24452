"""
Shared HTTP plumbing for provider clients, dood!
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from lib.rate_limiter import RateLimiterManager

from .exceptions import ProviderRateLimitedError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "CloudCoverForecast/1.0 (+https://github.com/cloud-cover-forecast)"


class BaseProviderClient:
    """
    Base class for upstream API clients, dood!

    Creates a new HTTP session for each request to support proper concurrent
    requests. Every call is bounded by ``requestTimeout`` and counted against
    the rate limiter queue of the provider, so an exhausted budget fails fast
    instead of hitting the upstream service.

    Subclasses set ``providerName`` and ``DEFAULT_BASE_URL`` and translate the
    payload returned by ``_makeRequest`` into canonical models.
    """

    providerName = "provider"
    DEFAULT_BASE_URL = ""
    DEFAULT_TIMEOUT: float = 10

    def __init__(
        self,
        *,
        baseUrl: Optional[str] = None,
        requestTimeout: Optional[float] = None,
        userAgent: str = DEFAULT_USER_AGENT,
        rateLimiterQueue: Optional[str] = None,
    ):
        """
        Initialize provider client, dood!

        Args:
            baseUrl: API endpoint override (default: provider public endpoint)
            requestTimeout: HTTP request timeout in seconds (default: provider specific)
            userAgent: User-Agent header sent with every request
            rateLimiterQueue: Rate limiter queue name, None disables outbound throttling
        """
        self.baseUrl = baseUrl or self.DEFAULT_BASE_URL
        self.requestTimeout = requestTimeout if requestTimeout is not None else self.DEFAULT_TIMEOUT
        self.userAgent = userAgent
        self.rateLimiterQueue = rateLimiterQueue
        self._rateLimiter = RateLimiterManager.getInstance()

    async def _makeRequest(
        self,
        url: str,
        params: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Make HTTP GET request and return parsed JSON, dood!

        Args:
            url: Full endpoint URL
            params: Query parameters
            headers: Extra headers (User-Agent is always set)

        Returns:
            Parsed JSON response

        Raises:
            ProviderRateLimitedError: Outbound request budget exhausted
            TransportError: Timeout, network error, non-200 status or invalid JSON
        """
        if self.rateLimiterQueue is not None:
            result = await self._rateLimiter.checkAndRecord(self.rateLimiterQueue)
            if not result.allowed:
                logger.warning(
                    f"Outbound budget for {self.providerName} exhausted, retry in {result.retryAfter}s, dood!"
                )
                raise ProviderRateLimitedError(self.providerName, result.retryAfter)

        requestHeaders = {"User-Agent": self.userAgent, "Accept": "application/json"}
        if headers:
            requestHeaders.update(headers)

        logger.debug(f"Making request to {url} with params: {params}")

        try:
            # Create new session for each request
            async with httpx.AsyncClient(timeout=self.requestTimeout) as session:
                response = await session.get(url, params=params, headers=requestHeaders)

                if response.status_code == 200:
                    data = response.json()
                    logger.debug(f"{self.providerName} request successful: {response.status_code}")
                    return data

                elif response.status_code in (401, 403):
                    logger.error(f"{self.providerName} rejected credentials: {response.status_code}")

                elif response.status_code == 429:
                    logger.error(f"{self.providerName} rate limit exceeded")

                elif response.status_code >= 500:
                    logger.error(f"{self.providerName} server error: {response.status_code}")

                else:
                    logger.error(f"{self.providerName} request failed: {response.status_code}")
                    logger.error(f"Response text: {response.text}")

                raise TransportError(
                    self.providerName,
                    f"HTTP status {response.status_code}",
                    statusCode=response.status_code,
                )

        except httpx.TimeoutException as e:
            logger.error(f"{self.providerName} request timeout")
            raise TransportError(self.providerName, "request timeout") from e

        except httpx.RequestError as e:
            logger.error(f"{self.providerName} network error: {e}")
            raise TransportError(self.providerName, f"network error: {e}") from e

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse {self.providerName} JSON response: {e}")
            raise TransportError(self.providerName, "malformed JSON response") from e
