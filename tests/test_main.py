"""
Tests for the command line entry point, dood!
"""

import datetime
import json
from unittest.mock import AsyncMock, patch

import pytest

import lib.utils as utils
from lib.providers import CloudSample, MetNoClient, OpenMeteoForecastClient, OpenMeteoGeocodingClient
from main import main, parse_arguments


@pytest.fixture(autouse=True)
def workDir(tmp_path, monkeypatch):
    """Run every CLI call in an empty directory: no config.toml, no .env and a fresh cache."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def currentHours(count: int, provider: str, total: int):
    start = utils.floorToHour(datetime.datetime.now(datetime.timezone.utc))
    return [
        CloudSample(
            time=start + datetime.timedelta(hours=i),
            total=total,
            low=10,
            medium=None if provider == "open-meteo" else 20,
            high=30,
            provider=provider,
        )
        for i in range(count)
    ]


def readOutput(capsys):
    return json.loads(capsys.readouterr().out)


class TestParseArguments:
    """Test argument parsing."""

    def testDefaults(self):
        args = parse_arguments([])

        assert args.config is None
        assert args.hours is None
        assert args.search is None

    def testConfigDefaultsToExistingFile(self, workDir):
        (workDir / "config.toml").write_text("[forecast]\n", encoding="utf-8")

        assert parse_arguments([]).config == "config.toml"

    def testCommandsAreExclusive(self):
        with pytest.raises(SystemExit):
            parse_arguments(["--search", "Cork", "--clear-cache"])


class TestMain:
    """Test end to end runs with patched provider clients."""

    def testClearCache(self, capsys):
        assert main(["--clear-cache"]) == 0

        assert readOutput(capsys) == {"ok": True, "cacheVersion": 2}

    def testInvalidCoordinate(self, capsys):
        with patch("httpx.AsyncClient") as mock_client:
            assert main(["--lat", "91", "--lon", "0"]) == 2
            mock_client.assert_not_called()

        output = readOutput(capsys)
        assert output["ok"] is False
        assert output["error"] == "invalid_input"

    def testAstronomyDisabled(self, capsys):
        assert main(["--astronomy"]) == 2

        assert readOutput(capsys)["error"] == "disabled"

    def testForecast(self, capsys):
        primary = AsyncMock(return_value=currentHours(3, "open-meteo", 80))
        secondary = AsyncMock(return_value=currentHours(3, "met-no", 40))

        with (
            patch.object(OpenMeteoForecastClient, "fetchHourly", primary),
            patch.object(MetNoClient, "fetchHourly", secondary),
        ):
            assert main(["--lat", "51.8986", "--lon", "-8.4756", "--hours", "3"]) == 0

        output = readOutput(capsys)
        assert output["ok"] is True
        assert len(output["forecast"]["samples"]) == 3
        assert output["forecast"]["samples"][0]["medium"] == 20
        assert output["forecast"]["samples"][0]["backfilled"] == ["medium"]
        assert output["summary"]["total"] == 80
        assert output["differences"]["rowsWithDifferences"] == 3
        assert "note" not in output
        primary.assert_awaited_once_with(51.8986, -8.4756, 3)

    def testSearch(self, capsys):
        candidates = [
            {
                "name": "Cork",
                "latitude": 51.89797,
                "longitude": -8.47061,
                "country": "Ireland",
                "admin1": "Munster",
                "admin2": "",
                "timezone": "Europe/Dublin",
            }
        ]

        with patch.object(OpenMeteoGeocodingClient, "search", AsyncMock(return_value=candidates)):
            assert main(["--search", "Cork"]) == 0

        output = readOutput(capsys)
        assert output["query"] == "Cork"
        assert output["results"][0]["displayName"] == "Cork, Munster, Ireland"

    def testLocationNotFound(self, capsys):
        with patch.object(OpenMeteoGeocodingClient, "search", AsyncMock(return_value=[])):
            assert main(["--location", "Atlantis"]) == 2

        assert readOutput(capsys)["error"] == "location_not_found"

    def testBadDate(self):
        assert main(["--astronomy", "--date", "yesterday"]) == 1
