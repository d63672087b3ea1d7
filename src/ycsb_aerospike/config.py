"""Configuration management for the Aerospike binding."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import (
    DEFAULT_HOST,
    DEFAULT_NAMESPACE,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT_MS,
    BindingSettings,
    ConnectionSettings,
)

try:
    import tomllib as _toml  # Python 3.11+

    TOMLDecodeError = _toml.TOMLDecodeError
except ModuleNotFoundError:
    import tomli as _toml  # type: ignore[no-redef]
    from tomli import TOMLDecodeError  # type: ignore

DEFAULT_CONFIG_NAME = "ycsb-aerospike.toml"

# Harness property name -> [aerospike] option name
_PROPERTY_ALIASES = {
    "as.namespace": "namespace",
    "as.host": "host",
    "as.port": "port",
    "as.timeout": "timeout-ms",
    "as.user": "user",
    "as.password": "password",
}
_CONNECTION_OPTIONS = ("namespace", "host", "port", "timeout-ms", "user", "password")


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {key}: {value!r}")


class Config:
    """Configuration manager for the binding."""

    def __init__(
        self,
        config_path: Path | None = None,
        data: Mapping[str, Any] | None = None,
    ):
        """Initialize configuration from TOML file.

        Args:
            config_path: TOML file to read
            data: Already parsed sections; when given the file is not read
        """
        if config_path is None:
            # Default to ycsb-aerospike.toml in current directory
            config_path = Path.cwd() / DEFAULT_CONFIG_NAME

        self.config_path = config_path
        self._config: dict[str, Any] = {}

        if data is not None:
            self._config = {
                section: dict(values) if isinstance(values, Mapping) else values
                for section, values in data.items()
            }
        elif config_path.exists():
            self._load_config()

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "Config":
        """Build a configuration from a flat harness property bag.

        Connection options are accepted bare (``host``) or with the harness
        prefix (``as.host``); ``as.timeout`` maps to ``timeout-ms``. Other
        recognised keys are ``driver``, ``compact-read-keys`` and
        ``log-level``.
        """
        aerospike: dict[str, Any] = {}
        binding: dict[str, Any] = {}
        logging_section: dict[str, Any] = {}

        for key, value in properties.items():
            if value is None:
                continue
            name = _PROPERTY_ALIASES.get(key, key)
            if name in _CONNECTION_OPTIONS:
                aerospike[name] = value
            elif name in ("driver", "compact-read-keys"):
                binding[name] = value
            elif name == "log-level":
                logging_section["level"] = value

        return cls(
            data={
                "aerospike": aerospike,
                "binding": binding,
                "logging": logging_section,
            }
        )

    def _load_config(self) -> None:
        """Load configuration from TOML file."""
        try:
            with open(self.config_path, "rb") as f:
                self._config = _toml.load(f)
        except TOMLDecodeError as e:
            # Re-raise TOML parsing errors so CLI can handle them
            raise ValueError(
                f"Invalid TOML configuration in {self.config_path}: {e}"
            ) from e
        except OSError as e:
            raise ValueError(
                f"Failed to load configuration from {self.config_path}: {e}"
            ) from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key."""
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value by dotted key, e.g. ``aerospike.host``."""
        *sections, name = key.split(".")
        target = self._config
        for section in sections:
            target = target.setdefault(section, {})
        target[name] = value

    @property
    def namespace(self) -> str:
        """Get Aerospike namespace."""
        value = self.get("aerospike.namespace", DEFAULT_NAMESPACE)
        return str(value) if value is not None else DEFAULT_NAMESPACE

    @property
    def host(self) -> str:
        """Get seed host."""
        value = self.get("aerospike.host", DEFAULT_HOST)
        return str(value) if value is not None else DEFAULT_HOST

    @property
    def port(self) -> int:
        """Get seed port."""
        return self._get_int("aerospike.port", DEFAULT_PORT)

    @property
    def timeout_ms(self) -> int:
        """Get request timeout shared by all operation policies."""
        return self._get_int("aerospike.timeout-ms", DEFAULT_TIMEOUT_MS)

    @property
    def user(self) -> str | None:
        value = self.get("aerospike.user")
        return str(value) if value is not None else None

    @property
    def password(self) -> str | None:
        value = self.get("aerospike.password")
        return str(value) if value is not None else None

    @property
    def driver(self) -> str:
        """Get store driver type."""
        value = self.get("binding.driver", "aerospike")
        return str(value) if value is not None else "aerospike"

    @property
    def compact_read_keys(self) -> bool:
        """Get whether reads use the 4-byte compact key."""
        value = self.get("binding.compact-read-keys", True)
        return _parse_bool("binding.compact-read-keys", value)

    @property
    def log_level(self) -> str:
        """Get default log level."""
        value = self.get("logging.level", "WARNING")
        return str(value).upper() if value is not None else "WARNING"

    @property
    def log_format(self) -> str:
        """Get log format."""
        value = self.get(
            "logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        return str(value)

    def connection_settings(self) -> ConnectionSettings:
        """Validate the connection options.

        Raises:
            ValueError: If any option is out of range
        """
        try:
            return ConnectionSettings(
                namespace=self.namespace,
                host=self.host,
                port=self.port,
                timeout_ms=self.timeout_ms,
                user=self.user,
                password=self.password,
            )
        except ValidationError as e:
            raise ValueError(f"Invalid [aerospike] configuration: {e}") from e

    def binding_settings(self) -> BindingSettings:
        """Validate everything needed to build a StoreAdapter.

        Raises:
            ValueError: If any option is invalid
        """
        connection = self.connection_settings()
        try:
            return BindingSettings(
                connection=connection,
                driver=self.driver,
                compact_read_keys=self.compact_read_keys,
            )
        except ValidationError as e:
            raise ValueError(f"Invalid [binding] configuration: {e}") from e

    def _get_int(self, key: str, default: int) -> int:
        value = self.get(key, default)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid integer for {key}: {value!r}") from e
