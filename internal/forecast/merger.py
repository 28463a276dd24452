"""
Forecast merger: reconciles hourly series of two weather providers, dood!

Merge policy per hour of ``[now, now + requestedHours)``:
    - primary sample present: used as base, bands it lacks are backfilled
      from the secondary sample of the same hour
    - only secondary sample present: used as is
    - neither present (or only samples without data): hour is dropped,
      nothing is interpolated

The merger never caches and never retries.
"""

import asyncio
import datetime
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Protocol, Tuple

import lib.utils as utils
from lib.cache import DEFAULT_CLOCK, Clock
from lib.providers import CLOUD_BANDS, CloudSample, ProviderError

from .errors import ForecastUnavailableError
from .models import Coordinate, ForecastSeries, ProviderDiff

logger = logging.getLogger(__name__)


class HourlyForecastProvider(Protocol):
    """Anything that returns canonical hourly cloud samples."""

    providerName: str

    async def fetchHourly(self, lat: float, lon: float, hours: int) -> List[CloudSample]: ...


def alignSamples(
    samples: List[CloudSample],
    start: datetime.datetime,
    end: datetime.datetime,
) -> Dict[datetime.datetime, CloudSample]:
    """
    Hour-align samples to UTC and keep those in ``[start, end)``, dood!

    On duplicate hours the first sample wins. Samples without any band
    value do not count as covering their hour.
    """
    aligned: Dict[datetime.datetime, CloudSample] = {}
    for sample in samples:
        hour = utils.floorToHour(sample.time)
        if not start <= hour < end:
            continue
        if len(sample.missingBands()) == len(CLOUD_BANDS):
            logger.debug(f"Empty {sample.provider} sample for {hour.isoformat()}, skipping")
            continue
        if hour in aligned:
            logger.debug(f"Duplicate {sample.provider} sample for {hour.isoformat()}, keeping first")
            continue
        aligned[hour] = sample if sample.time == hour else replace(sample, time=hour)
    return aligned


def mergeSample(
    primary: CloudSample,
    secondary: Optional[CloudSample],
    diffThreshold: int,
) -> Tuple[CloudSample, List[ProviderDiff]]:
    """
    Merge two samples of the same hour field by field, dood!

    Returns:
        Merged sample and the bands where providers differ by more than diffThreshold
    """
    if secondary is None:
        return primary, []

    diffs: List[ProviderDiff] = []
    backfill: Dict[str, int] = {}
    for band in CLOUD_BANDS:
        primaryValue = primary.getBand(band)
        secondaryValue = secondary.getBand(band)
        if secondaryValue is None:
            continue
        if primaryValue is None:
            backfill[band] = secondaryValue
        elif abs(primaryValue - secondaryValue) > diffThreshold:
            diffs.append(ProviderDiff(primary.time, band, primaryValue, secondaryValue))

    if not backfill:
        return primary, diffs
    return primary.withBands(backfill, tuple(backfill)), diffs


class ForecastMerger:
    """
    Fetches both providers concurrently and merges the series, dood!

    Args:
        primary: Preferred provider with finer cloud band data
        secondary: Provider used for gaps and cross-validation
        diffThreshold: Percent points above which a disagreement is recorded
        clock: Wall-clock source defining the current hour
    """

    def __init__(
        self,
        primary: HourlyForecastProvider,
        secondary: HourlyForecastProvider,
        diffThreshold: int = 20,
        clock: Clock = DEFAULT_CLOCK,
    ):
        self.primary = primary
        self.secondary = secondary
        self.diffThreshold = diffThreshold
        self._clock = clock

    @property
    def providerSet(self) -> str:
        """Provider set tag used in cache keys, e.g. "open-meteo+met-no"."""
        return f"{self.primary.providerName}+{self.secondary.providerName}"

    async def _fetch(
        self, provider: HourlyForecastProvider, coordinate: Coordinate, hours: int
    ) -> List[CloudSample] | ProviderError:
        try:
            return await provider.fetchHourly(coordinate.latitude, coordinate.longitude, hours)
        except ProviderError as e:
            logger.warning(f"Provider {provider.providerName} failed: {e}")
            return e

    async def merge(self, coordinate: Coordinate, requestedHours: int) -> ForecastSeries:
        """
        Produce merged series for coordinate and horizon, dood!

        Raises:
            ForecastUnavailableError: Both providers failed or neither has any hour in the horizon
        """
        # Cancelling the caller cancels both fetches
        primaryResult, secondaryResult = await asyncio.gather(
            self._fetch(self.primary, coordinate, requestedHours),
            self._fetch(self.secondary, coordinate, requestedHours),
        )

        primaryError = primaryResult if isinstance(primaryResult, ProviderError) else None
        secondaryError = secondaryResult if isinstance(secondaryResult, ProviderError) else None
        if primaryError is not None and secondaryError is not None:
            logger.error(f"Both weather providers failed for {coordinate}")
            raise ForecastUnavailableError(primaryError, secondaryError)

        now = datetime.datetime.fromtimestamp(self._clock(), tz=datetime.timezone.utc)
        start = utils.floorToHour(now)
        end = start + datetime.timedelta(hours=requestedHours)

        primaryHours = alignSamples(primaryResult, start, end) if primaryError is None else {}  # type: ignore[arg-type]
        secondaryHours = (
            alignSamples(secondaryResult, start, end) if secondaryError is None else {}  # type: ignore[arg-type]
        )

        samples: List[CloudSample] = []
        diffs: List[ProviderDiff] = []
        for hour in sorted(primaryHours.keys() | secondaryHours.keys()):
            primarySample = primaryHours.get(hour)
            secondarySample = secondaryHours.get(hour)
            if primarySample is None:
                samples.append(secondarySample)  # type: ignore[arg-type]
                continue
            merged, hourDiffs = mergeSample(primarySample, secondarySample, self.diffThreshold)
            samples.append(merged)
            diffs.extend(hourDiffs)

        if not samples:
            raise ForecastUnavailableError(
                primaryError, secondaryError, message="Weather providers returned no data for the requested hours"
            )

        secondaryOnly = primaryError is not None
        if secondaryOnly:
            logger.warning(f"Forecast for {coordinate} uses {self.secondary.providerName} data only")

        providers = tuple(
            provider.providerName
            for provider, error in ((self.primary, primaryError), (self.secondary, secondaryError))
            if error is None
        )
        logger.debug(
            f"Merged {len(samples)} hours for {coordinate} from {providers}, "
            f"{len({diff.time for diff in diffs})} hours with differences"
        )
        return ForecastSeries(
            coordinate=coordinate,
            requestedHours=requestedHours,
            samples=tuple(samples),
            providers=providers,
            secondaryOnly=secondaryOnly,
            diffs=tuple(diffs),
            generatedAt=now,
        )
