"""
Common utilities for the cloud cover forecast service.
"""

import datetime
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def floorToHour(dt: datetime.datetime) -> datetime.datetime:
    """
    Normalize a datetime to the start of its hour in UTC.

    Naive datetimes are treated as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    else:
        dt = dt.astimezone(datetime.timezone.utc)
    return dt.replace(minute=0, second=0, microsecond=0)


def parseDelay(delayStr: str) -> int:
    """
    Parse delay string to integer.

    Args:
        delayStr: String in one of formats:
            1. `DDdHHhMMmSSs` (e.g., "1d2h30m15s") - each section is optional but at least one must be present
            2. `HH:MM[:SS]` (e.g., "2:30" or "2:30:15")

    Returns:
        Total delay in seconds as integer.

    Raises:
        ValueError: If the string doesn't match any supported format.
    """
    # Format 1: DDdHHhMMmSSs (e.g., "1d2h30m15s") - each section is optional but at least one must be present
    if any(c in delayStr for c in ["d", "h", "m", "s"]):
        try:
            totalSeconds = 0
            remaining = delayStr

            for suffix, multiplier in (("d", 24 * 3600), ("h", 3600), ("m", 60), ("s", 1)):
                if suffix in remaining:
                    index = remaining.index(suffix)
                    totalSeconds += int(remaining[:index]) * multiplier
                    remaining = remaining[index + 1 :]

            # If we processed the entire string and have at least one component, return the result
            if remaining == "":
                return totalSeconds

        except (ValueError, IndexError):
            pass  # Will try next format

    # Format 2: HH:MM[:SS] (e.g., "2:30" or "2:30:15")
    timeParts = delayStr.split(":")
    if 2 <= len(timeParts) <= 3:
        try:
            hours = int(timeParts[0])
            minutes = int(timeParts[1])
            seconds = int(timeParts[2]) if len(timeParts) == 3 else 0

            # Validate ranges
            if 0 <= minutes < 60 and 0 <= seconds < 60:
                return hours * 3600 + minutes * 60 + seconds

        except ValueError:
            pass  # Will raise ValueError at end

    raise ValueError(f"Invalid delay format: {delayStr}. Expected formats: '[DDd][HHh][MMm][SSs]' or 'HH:MM[:SS]'")


def parseSeconds(value: Any, default: int) -> int:
    """
    Read a duration from config: plain number of seconds or a delay string ("15m", "1d").
    """
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    valueStr = str(value).strip()
    if valueStr.isdigit():
        return int(valueStr)
    return parseDelay(valueStr)


def jsonDumps(data: Any, compact: Optional[bool] = None, **kwargs) -> str:
    dumpKwargs = {
        "ensure_ascii": False,
        "default": str,
        "sort_keys": True,
    }

    if compact is None:
        # If indent is passed, then user want pretty-printed JSON,
        #  no need to use compact separators
        compact = "indent" not in kwargs

    if compact:
        dumpKwargs["separators"] = (",", ":")
    dumpKwargs.update(kwargs)
    return json.dumps(data, **dumpKwargs)


def load_dotenv(path: str = ".env", populateEnv: bool = True) -> Dict[str, str]:
    """
    Simple dotenv file loader.
    Just read file line by line and put key-value pairs into dictionary.

    Args:
        path: Path to .env file (default ".env")
        populateEnv: Whether to populate environment variables (default True).
            Variables already present in the environment are not overwritten.

    Returns:
        Dictionary of key-value pairs from .env file (empty if file does not exist)
    """
    ret: Dict[str, str] = {}
    if not os.path.exists(path):
        logger.debug(f"No dotenv file at {path}")
        return ret

    with open(path, "rt") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            splittedLine = line.split("=", 1)
            if len(splittedLine) == 2:
                key, value = splittedLine
                ret[key.strip()] = value.strip().strip('"')

    if populateEnv:
        for k, v in ret.items():
            os.environ.setdefault(k, v)
    return ret
