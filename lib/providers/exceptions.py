"""
Provider client exceptions, dood!
"""

from typing import Optional


class ProviderError(Exception):
    """Base class for all upstream provider errors, dood!"""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class TransportError(ProviderError):
    """
    Upstream could not deliver a usable answer, dood!

    Covers network failures, timeouts, non-200 statuses and malformed payloads.
    """

    def __init__(self, provider: str, message: str, statusCode: Optional[int] = None):
        self.statusCode = statusCode
        super().__init__(provider, message)


class ProviderRateLimitedError(TransportError):
    """Local request budget for the provider is exhausted, dood!"""

    def __init__(self, provider: str, retryAfter: int):
        self.retryAfter = retryAfter
        super().__init__(provider, f"request budget exhausted, retry in {retryAfter} seconds")


class ProviderDisabledError(ProviderError):
    """Optional provider is not configured (no credential), dood!"""

    def __init__(self, provider: str):
        super().__init__(provider, "provider is disabled, no API key configured")
