"""
Forecast service models, dood!

Value objects shared by the geocoder, merger and aggregation service, plus the
configuration objects built from the TOML sections.
"""

import datetime
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import lib.utils as utils
from lib.providers import CLOUD_BANDS, CloudSample, GeocodeCandidate
from lib.rate_limiter import QueueConfig

from .errors import InvalidInputError


@dataclass(frozen=True)
class Coordinate:
    """
    Validated latitude/longitude pair, dood!

    Raises:
        InvalidInputError: Non-numeric, non-finite or out-of-range values
    """

    latitude: float
    longitude: float

    def __post_init__(self):
        for name, value, limit in (("latitude", self.latitude, 90), ("longitude", self.longitude, 180)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidInputError(f"{name} must be a number, got {value!r}", field=name)
            if not math.isfinite(value) or not -limit <= value <= limit:
                raise InvalidInputError(f"{name} must be between -{limit} and {limit}, got {value}", field=name)
            object.__setattr__(self, name, float(value))

    @classmethod
    def parse(cls, latitude: Any, longitude: Any) -> "Coordinate":
        """Build from user input, accepting numeric strings like "51.8986"."""

        def toNumber(name: str, value: Any) -> Any:
            if value is None or (isinstance(value, str) and not value.strip()):
                raise InvalidInputError(f"{name} is required", field=name)
            if isinstance(value, str):
                try:
                    return float(value.strip())
                except ValueError:
                    raise InvalidInputError(f"{name} must be a number, got {value!r}", field=name)
            return value

        return cls(toNumber("latitude", latitude), toNumber("longitude", longitude))

    def rounded(self, precision: int) -> "Coordinate":
        # + 0.0 turns -0.0 into 0.0
        return Coordinate(round(self.latitude, precision) + 0.0, round(self.longitude, precision) + 0.0)

    def toDict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class GeocodeResult:
    """Resolved location candidate with validated coordinate."""

    name: str
    coordinate: Coordinate
    country: str = ""
    admin1: str = ""
    admin2: str = ""
    timezone: str = ""

    @property
    def displayName(self) -> str:
        """Human readable name like "Cork, Munster, Ireland", dood!"""
        parts = []
        for part in (self.name, self.admin1, self.country):
            if part and part not in parts:
                parts.append(part)
        return ", ".join(parts)

    @classmethod
    def fromCandidate(cls, candidate: GeocodeCandidate) -> "GeocodeResult":
        """
        Validate provider candidate, dood!

        Raises:
            InvalidInputError: Missing name or invalid coordinate
        """
        name = str(candidate.get("name") or "").strip()
        if not name:
            raise InvalidInputError("Candidate has no name", field="name")
        return cls(
            name=name,
            coordinate=Coordinate(candidate.get("latitude"), candidate.get("longitude")),  # type: ignore[arg-type]
            country=candidate.get("country") or "",
            admin1=candidate.get("admin1") or "",
            admin2=candidate.get("admin2") or "",
            timezone=candidate.get("timezone") or "",
        )

    def toDict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "displayName": self.displayName,
            **self.coordinate.toDict(),
            "country": self.country,
            "admin1": self.admin1,
            "admin2": self.admin2,
            "timezone": self.timezone,
        }

    @classmethod
    def fromDict(cls, data: Dict[str, Any]) -> "GeocodeResult":
        return cls(
            name=data["name"],
            coordinate=Coordinate(data["latitude"], data["longitude"]),
            country=data.get("country", ""),
            admin1=data.get("admin1", ""),
            admin2=data.get("admin2", ""),
            timezone=data.get("timezone", ""),
        )


@dataclass(frozen=True)
class ProviderDiff:
    """Band where both providers disagree by more than the threshold at one hour."""

    time: datetime.datetime
    band: str
    primaryValue: int
    secondaryValue: int

    @property
    def difference(self) -> int:
        return abs(self.primaryValue - self.secondaryValue)


def _sampleToDict(sample: CloudSample) -> Dict[str, Any]:
    return {
        "time": sample.time.isoformat(),
        **{band: sample.getBand(band) for band in CLOUD_BANDS},
        "provider": sample.provider,
        "backfilled": list(sample.backfilled),
    }


def _sampleFromDict(data: Dict[str, Any]) -> CloudSample:
    return CloudSample(
        time=datetime.datetime.fromisoformat(data["time"]),
        provider=data.get("provider", ""),
        backfilled=tuple(data.get("backfilled", ())),
        **{band: data.get(band) for band in CLOUD_BANDS},
    )


@dataclass(frozen=True)
class ForecastSeries:
    """
    Merged hourly cloud cover forecast, dood!

    Immutable, so one instance may be cached and shared by concurrent readers.

    Attributes:
        coordinate: Rounded coordinate the forecast was fetched for
        requestedHours: Horizon asked for, ``len(samples)`` may be smaller
        samples: Hourly samples with strictly increasing UTC times
        providers: Providers that delivered data, primary first
        secondaryOnly: Primary provider failed, data comes from the secondary only
        diffs: Hours and bands where providers disagree above the threshold
        generatedAt: When the series was merged
    """

    coordinate: Coordinate
    requestedHours: int
    samples: Tuple[CloudSample, ...]
    providers: Tuple[str, ...] = ()
    secondaryOnly: bool = False
    diffs: Tuple[ProviderDiff, ...] = ()
    generatedAt: Optional[datetime.datetime] = None

    def __post_init__(self):
        for previous, current in zip(self.samples, self.samples[1:]):
            if current.time <= previous.time:
                raise ValueError(f"Sample times must be strictly increasing: {previous.time} >= {current.time}")

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def rowsWithDifferences(self) -> int:
        return len({diff.time for diff in self.diffs})

    def bandDifferences(self) -> Dict[str, int]:
        """Number of disagreeing hours per band, dood!"""
        counts = {band: 0 for band in CLOUD_BANDS}
        for diff in self.diffs:
            counts[diff.band] += 1
        return counts

    def averages(self) -> Dict[str, Any]:
        """
        Rounded average per band ignoring missing values, plus the covered range.

        A band with no values at all averages to None.
        """
        result: Dict[str, Any] = {}
        for band in CLOUD_BANDS:
            values = [v for v in (sample.getBand(band) for sample in self.samples) if v is not None]
            result[band] = round(sum(values) / len(values)) if values else None
        result["hours"] = len(self.samples)
        result["firstTime"] = self.samples[0].time.isoformat() if self.samples else None
        result["lastTime"] = self.samples[-1].time.isoformat() if self.samples else None
        return result

    def toDict(self) -> Dict[str, Any]:
        return {
            "coordinate": self.coordinate.toDict(),
            "requestedHours": self.requestedHours,
            "providers": list(self.providers),
            "secondaryOnly": self.secondaryOnly,
            "generatedAt": self.generatedAt.isoformat() if self.generatedAt else None,
            "samples": [_sampleToDict(sample) for sample in self.samples],
            "diffs": [
                {
                    "time": diff.time.isoformat(),
                    "band": diff.band,
                    "primaryValue": diff.primaryValue,
                    "secondaryValue": diff.secondaryValue,
                }
                for diff in self.diffs
            ],
        }

    @classmethod
    def fromDict(cls, data: Dict[str, Any]) -> "ForecastSeries":
        coordinate = data["coordinate"]
        generatedAt = data.get("generatedAt")
        return cls(
            coordinate=Coordinate(coordinate["latitude"], coordinate["longitude"]),
            requestedHours=int(data["requestedHours"]),
            samples=tuple(_sampleFromDict(sample) for sample in data.get("samples", [])),
            providers=tuple(data.get("providers", ())),
            secondaryOnly=bool(data.get("secondaryOnly", False)),
            diffs=tuple(
                ProviderDiff(
                    time=datetime.datetime.fromisoformat(diff["time"]),
                    band=diff["band"],
                    primaryValue=diff["primaryValue"],
                    secondaryValue=diff["secondaryValue"],
                )
                for diff in data.get("diffs", [])
            ),
            generatedAt=datetime.datetime.fromisoformat(generatedAt) if generatedAt else None,
        )


# ============================================================================
# Configuration objects
# ============================================================================


@dataclass
class ForecastConfig:
    """
    Aggregation settings from the ``[forecast]`` section, dood!

    TTLs are in seconds.
    """

    defaultLatitude: float = 51.8986
    defaultLongitude: float = -8.4756
    defaultHours: int = 48
    maxHours: int = 168
    weatherTtl: int = 15 * 60
    geocodingTtl: int = 24 * 3600
    astronomyTtl: int = 24 * 3600
    coordinatePrecision: int = 4
    geocodingLimit: int = 5
    diffThreshold: int = 20
    collapseConcurrentMisses: bool = True

    def __post_init__(self):
        if self.maxHours < 1:
            raise ValueError(f"max-hours must be positive, got {self.maxHours}")
        if not 1 <= self.defaultHours <= self.maxHours:
            raise ValueError(f"default-hours must be between 1 and {self.maxHours}, got {self.defaultHours}")
        for name in ("weatherTtl", "geocodingTtl", "astronomyTtl"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if not 0 <= self.coordinatePrecision <= 8:
            raise ValueError(f"coordinate-precision must be between 0 and 8, got {self.coordinatePrecision}")
        if self.geocodingLimit < 1:
            raise ValueError(f"geocoding-limit must be positive, got {self.geocodingLimit}")
        Coordinate(self.defaultLatitude, self.defaultLongitude)

    @property
    def defaultCoordinate(self) -> Coordinate:
        return Coordinate(self.defaultLatitude, self.defaultLongitude)

    @classmethod
    def fromDict(cls, config: Dict[str, Any]) -> "ForecastConfig":
        defaults = cls()
        return cls(
            defaultLatitude=config.get("default-lat", defaults.defaultLatitude),
            defaultLongitude=config.get("default-lon", defaults.defaultLongitude),
            defaultHours=int(config.get("default-hours", defaults.defaultHours)),
            maxHours=int(config.get("max-hours", defaults.maxHours)),
            weatherTtl=utils.parseSeconds(config.get("weather-ttl"), defaults.weatherTtl),
            geocodingTtl=utils.parseSeconds(config.get("geocoding-ttl"), defaults.geocodingTtl),
            astronomyTtl=utils.parseSeconds(config.get("astronomy-ttl"), defaults.astronomyTtl),
            coordinatePrecision=int(config.get("coordinate-precision", defaults.coordinatePrecision)),
            geocodingLimit=int(config.get("geocoding-limit", defaults.geocodingLimit)),
            diffThreshold=int(config.get("diff-threshold", defaults.diffThreshold)),
            collapseConcurrentMisses=bool(config.get("collapse-concurrent-misses", defaults.collapseConcurrentMisses)),
        )


@dataclass(frozen=True)
class PublicLookupConfig:
    """Request ceiling for the public lookup boundary, per client identity."""

    maxRequests: int = 5
    windowSeconds: int = 60

    def toQueueConfig(self) -> QueueConfig:
        return QueueConfig(maxRequests=self.maxRequests, windowSeconds=self.windowSeconds)

    @classmethod
    def fromDict(cls, config: Dict[str, Any]) -> "PublicLookupConfig":
        return cls(
            maxRequests=int(config.get("max-requests", cls.maxRequests)),
            windowSeconds=utils.parseSeconds(config.get("window-seconds"), cls.windowSeconds),
        )


@dataclass(frozen=True)
class ProviderConfig:
    """
    Settings of one upstream provider from ``[providers.<name>]``, dood!

    Unset values leave the client defaults in place.
    """

    timeout: Optional[float] = None
    userAgent: Optional[str] = None
    baseUrl: Optional[str] = None
    apiKey: Optional[str] = None

    @classmethod
    def fromDict(cls, config: Dict[str, Any]) -> "ProviderConfig":
        timeout = config.get("timeout")
        return cls(
            timeout=float(timeout) if timeout is not None else None,
            userAgent=config.get("user-agent") or None,
            baseUrl=config.get("base-url") or None,
            apiKey=config.get("api-key") or None,
        )

    def clientKwargs(self) -> Dict[str, Any]:
        """Keyword arguments for BaseProviderClient subclasses."""
        kwargs: Dict[str, Any] = {"requestTimeout": self.timeout, "baseUrl": self.baseUrl}
        if self.userAgent:
            kwargs["userAgent"] = self.userAgent
        return kwargs
