"""
Cache value converters for forecast models, dood!

Needed by persistent caches (SqliteCache), which store JSON text.
"""

from typing import List

from lib.cache import JsonValueConverter, ValueConverter

from .models import ForecastSeries, GeocodeResult


class ForecastSeriesConverter(ValueConverter[ForecastSeries]):
    """ForecastSeries <-> JSON text."""

    def __init__(self):
        self._json = JsonValueConverter[dict]()

    def encode(self, obj: ForecastSeries) -> str:
        return self._json.encode(obj.toDict())

    def decode(self, value: str) -> ForecastSeries:
        return ForecastSeries.fromDict(self._json.decode(value))


class GeocodeResultsConverter(ValueConverter[List[GeocodeResult]]):
    """List of GeocodeResult <-> JSON text, order preserved."""

    def __init__(self):
        self._json = JsonValueConverter[list]()

    def encode(self, obj: List[GeocodeResult]) -> str:
        return self._json.encode([result.toDict() for result in obj])

    def decode(self, value: str) -> List[GeocodeResult]:
        return [GeocodeResult.fromDict(item) for item in self._json.decode(value)]
