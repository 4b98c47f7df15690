"""Configuration loader for docstorefs.

Supports two config sources:

1. **kind: Config YAML**: loaded via explicit path or the
   ``DOCSTOREFS_CONFIG_PATH`` env var.
2. **pyproject.toml [tool.docstorefs]**: auto-discovery fallback.

Environment variables always win over file values. A deployment can
point an existing configuration at another proxy without editing files.
"""

from __future__ import annotations

import os
import re
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

import yaml

from docstorefs.kernel.config.models import DocStoreFSConfig, LoggingConfig, StoreConfig
from docstorefs.kernel.exceptions import ConfigurationError
from docstorefs.kernel.logging import get_logger

# Constants for boolean environment variable parsing
_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

logger = get_logger(__name__)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = _TRUTHY_VALUES | _FALSY_VALUES
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


@lru_cache(maxsize=32)
def _load_and_parse_cached(path_str: str) -> DocStoreFSConfig:
    """Cached configuration loader."""
    loader = ConfigLoader()
    return loader._load_and_parse(Path(path_str))


def clear_config_cache() -> None:
    """Drop cached configuration files (tests and config reloads)."""
    _load_and_parse_cached.cache_clear()


class ConfigLoader:
    """Loads and processes docstorefs configuration files."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def load_config_file(self, path: str | Path | None = None) -> DocStoreFSConfig:
        """Load configuration from YAML or pyproject.toml.

        Parameters
        ----------
        path : str | Path | None
            Path to config file. If None, searches using discovery order.

        Returns
        -------
        DocStoreFSConfig
            Parsed configuration with environment variables substituted
        """
        config_path = self._find_config_file(path)
        return _load_and_parse_cached(str(config_path.absolute()))

    def _load_and_parse(self, config_path: Path) -> DocStoreFSConfig:
        """Load and parse configuration file (YAML or TOML)."""
        logger.info("Loading configuration from {path}", path=config_path)

        if config_path.suffix in (".yaml", ".yml"):
            return self._load_yaml_config(config_path)
        return self._load_toml_config(config_path)

    def _load_yaml_config(self, config_path: Path) -> DocStoreFSConfig:
        """Load and parse a ``kind: Config`` YAML file.

        Raises
        ------
        ConfigurationError
            If the YAML file is not a valid kind: Config manifest
        """
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigurationError(
                config_path.name, f"expected a mapping, got {type(data).__name__}"
            )

        kind = data.get("kind")
        if kind != "Config":
            raise ConfigurationError(
                config_path.name, f"must use 'kind: Config' manifest format, got 'kind: {kind}'"
            )

        spec = data.get("spec", {})
        if not isinstance(spec, dict):
            raise ConfigurationError(config_path.name, "'spec' must be a mapping")

        return self._parse_config(self._substitute_env_vars(spec))

    def _load_toml_config(self, config_path: Path) -> DocStoreFSConfig:
        """Load and parse a TOML config file (pyproject.toml or flat TOML)."""
        with config_path.open("rb") as f:
            data = tomllib.load(f)

        section = data.get("tool", {}).get("docstorefs")
        if section is None:
            if config_path.name == "pyproject.toml":
                logger.warning("No [tool.docstorefs] section in pyproject.toml, using defaults")
                section = {}
            else:
                section = data

        return self._parse_config(self._substitute_env_vars(section))

    def _find_config_file(self, path: str | Path | None) -> Path:
        """Find configuration file.

        Discovery order:
        1. Explicit path argument
        2. ``DOCSTOREFS_CONFIG_PATH`` env var
        3. ``pyproject.toml`` with ``[tool.docstorefs]`` in CWD or a parent

        Raises
        ------
        FileNotFoundError
            If no configuration file is found
        """
        if path:
            config_path = Path(path)
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return config_path

        if env_path := os.getenv("DOCSTOREFS_CONFIG_PATH"):
            config_path = Path(env_path)
            if config_path.exists():
                logger.debug("Using config from DOCSTOREFS_CONFIG_PATH: {}", config_path)
                return config_path
            logger.warning("DOCSTOREFS_CONFIG_PATH set but file not found: {}", config_path)

        current = Path.cwd()
        for directory in (current, *current.parents):
            pyproject = directory / "pyproject.toml"
            if pyproject.exists():
                with pyproject.open("rb") as f:
                    data = tomllib.load(f)
                if "docstorefs" in data.get("tool", {}):
                    return pyproject

        raise FileNotFoundError(
            "No configuration file found. Provide a kind: Config YAML path, "
            "set DOCSTOREFS_CONFIG_PATH, or add [tool.docstorefs] to pyproject.toml"
        )

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively substitute ``${VAR}`` placeholders in configuration."""
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    logger.debug(
                        "Environment variable ${{{var_name}}} not found, keeping placeholder",
                        var_name=var_name,
                    )
                    return match.group(0)
                return value

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def _parse_config(self, data: dict[str, Any]) -> DocStoreFSConfig:
        """Parse raw (format-agnostic) configuration data."""
        return DocStoreFSConfig(
            store=self._parse_store_config(data.get("store", {})),
            logging=self._parse_logging_config(data.get("logging", {})),
        )

    def _parse_store_config(self, store_data: dict[str, Any]) -> StoreConfig:
        """Parse the store section with environment variable overrides.

        - DOCSTOREFS_CONNECTION_STRING: connection string sent to the proxy
        - DOCSTOREFS_PROXY_URL: base URL of the HTTP proxy
        - DOCSTOREFS_TIMEOUT: request timeout in seconds
        """
        defaults = StoreConfig()
        connection_string = store_data.get("connection_string", defaults.connection_string)
        proxy_url = store_data.get("proxy_url", defaults.proxy_url)
        timeout = store_data.get("timeout", defaults.timeout)
        connection_header = store_data.get("connection_header", defaults.connection_header)

        if env_connection := os.getenv("DOCSTOREFS_CONNECTION_STRING"):
            connection_string = env_connection
            logger.debug("Overriding connection string from env")

        if env_proxy := os.getenv("DOCSTOREFS_PROXY_URL"):
            proxy_url = env_proxy
            logger.debug("Overriding proxy URL from env: {}", proxy_url)

        if env_timeout := os.getenv("DOCSTOREFS_TIMEOUT"):
            try:
                timeout = float(env_timeout)
            except ValueError:
                logger.warning("Invalid DOCSTOREFS_TIMEOUT value: {!r}", env_timeout)

        try:
            timeout = float(timeout)
        except (TypeError, ValueError) as e:
            raise ConfigurationError("store", f"timeout must be a number, got {timeout!r}") from e

        return StoreConfig(
            connection_string=connection_string,
            proxy_url=proxy_url,
            timeout=timeout,
            connection_header=connection_header,
        )

    def _parse_logging_config(self, logging_data: dict[str, Any]) -> LoggingConfig:
        """Parse logging configuration with environment variable overrides.

        - DOCSTOREFS_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        - DOCSTOREFS_LOG_FORMAT: Output format (console, json, structured, rich)
        - DOCSTOREFS_LOG_FILE: Optional file path for log output
        - DOCSTOREFS_LOG_COLOR: Use color output (true/false)
        """
        defaults = LoggingConfig()
        level = logging_data.get("level", defaults.level)
        format_type = logging_data.get("format", defaults.format)
        output_file = logging_data.get("output_file")
        use_color = logging_data.get("use_color", True)
        include_timestamp = logging_data.get("include_timestamp", True)

        if env_level := os.getenv("DOCSTOREFS_LOG_LEVEL"):
            level = env_level.upper()
            logger.debug("Overriding log level from env: {}", level)

        if env_format := os.getenv("DOCSTOREFS_LOG_FORMAT"):
            format_type = env_format.lower()
            logger.debug("Overriding log format from env: {}", format_type)

        if env_file := os.getenv("DOCSTOREFS_LOG_FILE"):
            output_file = env_file

        if env_color := os.getenv("DOCSTOREFS_LOG_COLOR"):
            try:
                use_color = _parse_bool_env(env_color)
            except ValueError as e:
                logger.warning("Invalid DOCSTOREFS_LOG_COLOR value: {}", e)

        return LoggingConfig(
            level=cast("Any", level.upper()),
            format=cast("Any", format_type),
            output_file=output_file,
            use_color=use_color,
            include_timestamp=include_timestamp,
        )


def get_default_config() -> DocStoreFSConfig:
    """Default configuration with environment overrides applied."""
    return ConfigLoader()._parse_config({})


def load_config(path: str | Path | None = None) -> DocStoreFSConfig:
    """Load configuration from file or return defaults.

    Parameters
    ----------
    path : str | Path | None
        Path to configuration file or None to search

    Returns
    -------
    DocStoreFSConfig
        Loaded configuration or defaults if no file was found
    """
    try:
        return ConfigLoader().load_config_file(path)
    except FileNotFoundError:
        if path:
            raise
        logger.info("No configuration file found, using defaults")
        return get_default_config()
