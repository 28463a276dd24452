"""
Cloud Cover Forecast - merged cloud cover forecasts from Open-Meteo and Met.no.
Command line entry point.
"""

from __future__ import annotations

import argparse
import asyncio
import datetime
import logging
import os
import sys
from typing import Any, Dict, List, Optional

import lib.utils as utils
from internal.config.manager import ConfigManager
from internal.forecast import AggregationService, Coordinate, createAggregationService, describeError
from internal.forecast.errors import ForecastError
from internal.forecast.messages import describeSeries, errorCode
from lib.logging_utils import initLogging
from lib.providers import ProviderError
from lib.rate_limiter import RateLimiterManager

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.WARNING)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.toml"


class CloudForecastApp:
    """Main orchestrator that wires configuration, logging and the forecast service."""

    def __init__(self, configPath: Optional[str] = DEFAULT_CONFIG_PATH, configDirs: Optional[List[str]] = None):
        self.configManager = ConfigManager(configPath, configDirs)
        initLogging(self.configManager.getLoggingConfig())
        self.service: Optional[AggregationService] = None

    async def start(self) -> AggregationService:
        self.service = await createAggregationService(self.configManager)
        return self.service

    async def stop(self) -> None:
        await RateLimiterManager.getInstance().destroy()

    async def run(self, args: argparse.Namespace) -> int:
        """Execute the requested command, print JSON and return exit code."""
        service = await self.start()
        try:
            if args.clear_cache:
                version = await service.clearCache()
                printJson({"ok": True, "cacheVersion": version})
                return 0

            if args.search:
                results = await service.geocode(args.search)
                printJson({"ok": True, "query": args.search, "results": [r.toDict() for r in results]})
                return 0

            location = None
            if args.location:
                location = await service.resolveLocation(args.location)
                coordinate = location.coordinate
            elif args.lat is not None or args.lon is not None:
                coordinate = Coordinate.parse(args.lat, args.lon)
            else:
                coordinate = service.config.defaultCoordinate

            if args.astronomy:
                date = datetime.date.fromisoformat(args.date) if args.date else None
                astro = await service.getAstronomy(coordinate, date)
                printJson({"ok": True, "coordinate": coordinate.toDict(), "astronomy": astro})
                return 0

            series = await service.getForecast(location or coordinate, args.hours)
            result: Dict[str, Any] = {
                "ok": True,
                "forecast": series.toDict(),
                "summary": series.averages(),
                "differences": {
                    "rowsWithDifferences": series.rowsWithDifferences,
                    "bands": series.bandDifferences(),
                },
            }
            if location is not None:
                result["location"] = location.toDict()
            note = describeSeries(series)
            if note:
                result["note"] = note
            printJson(result)
            return 0

        except (ForecastError, ProviderError) as e:
            printJson({"ok": False, "error": errorCode(e), "message": describeError(e)})
            return 2
        finally:
            await self.stop()


def printJson(data: Any) -> None:
    print(utils.jsonDumps(data, indent=2))


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Cloud cover forecast aggregated from several providers, dood!")
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH} if it exists)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times), dood!",
    )
    parser.add_argument("--lat", help="Latitude in degrees")
    parser.add_argument("--lon", help="Longitude in degrees")
    parser.add_argument("--location", help="Free text location, resolved with geocoding")
    parser.add_argument("--hours", type=int, default=None, help="Number of forecast hours (default from config)")

    commands = parser.add_mutually_exclusive_group()
    commands.add_argument("--search", metavar="QUERY", help="Only list location candidates for QUERY")
    commands.add_argument("--astronomy", action="store_true", help="Show moon and sun data instead of clouds")
    commands.add_argument("--clear-cache", action="store_true", help="Invalidate all cached data and exit")
    commands.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit, dood!",
    )
    parser.add_argument("--date", help="Date for --astronomy, YYYY-MM-DD (default: today, UTC)")

    args = parser.parse_args(argv)
    if args.config is None and os.path.exists(DEFAULT_CONFIG_PATH):
        args.config = DEFAULT_CONFIG_PATH
    return args


def prettyPrintConfig(configManager: ConfigManager):
    """Pretty-print the loaded configuration, dood!"""
    print("=== Cloud Cover Forecast Configuration ===")
    print()
    print(utils.jsonDumps(configManager.config, indent=2))
    print()
    print("=== Configuration loaded successfully, dood! ===")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        if args.print_config:
            prettyPrintConfig(ConfigManager(args.config, args.config_dir))
            return 0

        app = CloudForecastApp(configPath=args.config, configDirs=args.config_dir)
        return asyncio.run(app.run(args))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 130
    except ValueError as e:
        # Bad configuration values or --date
        logger.error(f"Invalid configuration or arguments: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
