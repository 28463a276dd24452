"""
Configuration management for the cloud cover forecast service.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

import lib.utils as utils
from lib.rate_limiter import RateLimiterManagerConfig

logger = logging.getLogger(__name__)

# Outbound budgets per upstream service, requests per hour
DEFAULT_RATELIMITER_CONFIG: RateLimiterManagerConfig = {
    "ratelimiters": {
        "open-meteo": {"type": "SlidingWindow", "config": {"maxRequests": 45, "windowSeconds": 3600}},
        "open-meteo-geocoding": {"type": "SlidingWindow", "config": {"maxRequests": 20, "windowSeconds": 3600}},
        "met-no": {"type": "SlidingWindow", "config": {"maxRequests": 15, "windowSeconds": 3600}},
        "ipgeolocation": {"type": "SlidingWindow", "config": {"maxRequests": 60, "windowSeconds": 3600}},
    },
    "queues": {
        "open-meteo": "open-meteo",
        "open-meteo-geocoding": "open-meteo-geocoding",
        "met-no": "met-no",
        "ipgeolocation": "ipgeolocation",
    },
}

PROVIDER_NAMES = ("open-meteo", "met-no", "open-meteo-geocoding", "ipgeolocation")


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace environment variable placeholders with actual values.

    Args:
        match: A regex match object containing the environment variable name.

    Returns:
        str: The value of the environment variable or the original placeholder
             if the variable is not set.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute environment variable placeholders in configuration values.

    This function processes strings, dictionaries, and lists to replace placeholders
    in the format ${VAR_NAME} with their corresponding environment variable values.

    Args:
        value: The configuration value to process. Can be a string, dict, list, or other type.

    Returns:
        The processed value with environment variables substituted
    """
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Manages configuration loading for the forecast service.

    Every section is optional: components fall back to their defaults when
    a section or key is missing.
    """

    def __init__(
        self,
        configPath: Optional[str] = "config.toml",
        configDirs: Optional[List[str]] = None,
        dotEnvFile: str = ".env",
    ):
        """Initialize ConfigManager with config file path and optional config directories.

        Args:
            configPath: Main TOML file, None to start from defaults only
            configDirs: Directories scanned recursively for extra *.toml files
            dotEnvFile: dotenv file exported into the environment before substitution
        """
        self.config_path = configPath
        self.config_dirs = configDirs or []
        utils.load_dotenv(path=dotEnvFile)
        self.config = substituteEnvVars(self._loadConfig())

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory, dood!"""
        toml_files = []
        dir_path = Path(directory)

        if not dir_path.exists():
            logger.warning(f"Config directory {directory} does not exist, skipping, dood!")
            return toml_files

        if not dir_path.is_dir():
            logger.warning(f"Config path {directory} is not a directory, skipping, dood!")
            return toml_files

        for toml_file in dir_path.rglob("*.toml"):
            if toml_file.is_file():
                toml_files.append(toml_file)
                logger.debug(f"Found config file: {toml_file}")

        return sorted(toml_files)  # Sort for consistent ordering

    def _mergeConfigs(self, base_config: Dict[str, Any], new_config: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, dood!"""
        merged = base_config.copy()

        for key, value in new_config.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                # Recursively merge nested dictionaries
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                # Override with new value
                merged[key] = value

        return merged

    def _loadConfig(self) -> Dict[str, Any]:
        """
        Load configuration from TOML file and optional config directories.

        Files from config directories are merged over the main file in sorted
        order; a broken file in a directory is logged and skipped.

        Raises:
            SystemExit: If an explicitly given main file is missing and no
                        config directories are provided, or it cannot be parsed.
        """
        config: Dict[str, Any] = {}

        if self.config_path is not None:
            config_file = Path(self.config_path)
            if not config_file.exists():
                if not self.config_dirs:
                    logger.error(f"Configuration file {self.config_path} not found!")
                    sys.exit(1)
            else:
                try:
                    with open(config_file, "rb") as f:
                        config = tomli.load(f)
                    logger.info(f"Loaded main config from {self.config_path}")
                except (OSError, tomli.TOMLDecodeError) as e:
                    logger.error(f"Failed to load configuration: {e}")
                    sys.exit(1)

        if self.config_dirs:
            logger.info(f"Scanning {len(self.config_dirs)} config directories for .toml files, dood!")

            for config_dir in self.config_dirs:
                toml_files = self._findTomlFilesRecursive(config_dir)
                logger.info(f"Found {len(toml_files)} .toml files in {config_dir}")

                for toml_file in toml_files:
                    try:
                        with open(toml_file, "rb") as f:
                            dir_config = tomli.load(f)

                        config = self._mergeConfigs(config, dir_config)
                        logger.info(f"Merged config from {toml_file}")

                    except (OSError, tomli.TOMLDecodeError) as e:
                        logger.error(f"Failed to load config file {toml_file}: {e}")
                        # Continue with other files instead of exiting

        logger.info("Configuration loaded and merged successfully, dood!")
        return config

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})

    def getForecastConfig(self) -> Dict[str, Any]:
        """
        Get forecast aggregation configuration.

        Keys (all optional): default-lat, default-lon, default-hours, max-hours,
        weather-ttl, geocoding-ttl, astronomy-ttl, coordinate-precision,
        geocoding-limit, diff-threshold, collapse-concurrent-misses.
        TTLs accept seconds or delay strings like "15m" or "1d".
        """
        return self.get("forecast", {})

    def getPublicLookupConfig(self) -> Dict[str, Any]:
        """Get public lookup rate limit configuration (max-requests, window-seconds)."""
        return self.get("public-lookup", {})

    def getCacheConfig(self) -> Dict[str, Any]:
        """
        Get cache backend configuration.

        Example return values:
            {"backend": "memory", "max-size": 1000}
            {"backend": "sqlite", "path": "var/cache.db"}
            {"backend": "null"}
        """
        return self.get("cache", {})

    def getProviderConfig(self, name: str) -> Dict[str, Any]:
        """
        Get configuration of a single upstream provider.

        Args:
            name: One of open-meteo, met-no, open-meteo-geocoding, ipgeolocation

        Returns:
            Dict with optional timeout, user-agent, base-url and api-key
        """
        if name not in PROVIDER_NAMES:
            raise ValueError(f"Unknown provider '{name}'")
        return self.get("providers", {}).get(name, {})

    def getRateLimiterConfig(self) -> RateLimiterManagerConfig:
        """Get outbound rate limiter configuration merged over default per-provider budgets."""
        merged = self._mergeConfigs(dict(DEFAULT_RATELIMITER_CONFIG), self.get("ratelimiter", {}))
        return merged  # type: ignore[return-value]
