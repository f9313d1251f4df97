"""Configuration loading for EnrollKit."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from enrollkit.kv_store import KeyValueStore

CONFIG_FILENAME = "enrollkit.yaml"
STORAGE_BACKENDS = ("memory", "sqlite")


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


def _int_option(section: dict[str, Any], key: str, default: int, section_name: str) -> int:
    try:
        return int(section.get(key, default))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {section_name}.{key}: {section.get(key)!r}") from e


@dataclass
class StorageConfig:
    """Key-value store selection."""

    backend: str = "sqlite"
    db_path: str = "enrollkit.db"


@dataclass
class LoggingConfig:
    """Logging settings passed to ``setup_logging``."""

    dir: str = "logs"
    file: str = "enrollkit.log"
    level: str = "INFO"
    console: bool = True
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5


@dataclass
class APIConfig:
    """Bind address for ``enrollkit serve``."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class EnrollKitConfig:
    """EnrollKit configuration.

    Every section is optional in the YAML file; missing keys take the
    dataclass defaults.
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    api: APIConfig = field(default_factory=APIConfig)
    root_path: Path = field(default_factory=Path)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root_path: Path) -> EnrollKitConfig:
        """Create config from dictionary.

        Args:
            data: Configuration dictionary from YAML.
            root_path: Directory containing the config file; relative
                database paths resolve against it.

        Returns:
            Parsed configuration object.

        Raises:
            ConfigError: If a section is not a mapping or a value is invalid.
        """
        sections = {}
        for name in ("storage", "logging", "api"):
            section = data.get(name) or {}
            if not isinstance(section, dict):
                raise ConfigError(f"Section '{name}' must be a mapping")
            sections[name] = section

        storage_data = sections["storage"]
        storage = StorageConfig(
            backend=str(storage_data.get("backend", "sqlite")),
            db_path=str(storage_data.get("db_path", "enrollkit.db")),
        )

        logging_data = sections["logging"]
        defaults = LoggingConfig()
        logging_config = LoggingConfig(
            dir=str(logging_data.get("dir", defaults.dir)),
            file=str(logging_data.get("file", defaults.file)),
            level=str(logging_data.get("level", defaults.level)),
            console=bool(logging_data.get("console", defaults.console)),
            max_bytes=_int_option(logging_data, "max_bytes", defaults.max_bytes, "logging"),
            backup_count=_int_option(
                logging_data, "backup_count", defaults.backup_count, "logging"
            ),
        )

        api_data = sections["api"]
        port = _int_option(api_data, "port", 8000, "api")
        api = APIConfig(host=str(api_data.get("host", "127.0.0.1")), port=port)

        config = cls(storage=storage, logging=logging_config, api=api, root_path=root_path)
        config.validate()
        return config

    def validate(self) -> None:
        """Raises ConfigError if the storage backend or log level is unknown."""
        if self.storage.backend not in STORAGE_BACKENDS:
            raise ConfigError(
                f"Unknown storage backend '{self.storage.backend}', "
                f"expected one of: {', '.join(STORAGE_BACKENDS)}"
            )
        if self.logging.level.upper() not in logging.getLevelNamesMapping():
            raise ConfigError(f"Unknown log level '{self.logging.level}'")

    def apply_env(self) -> EnrollKitConfig:
        """Override settings from ENROLLKIT_* environment variables."""
        overrides = (
            ("ENROLLKIT_STORAGE_BACKEND", self.storage, "backend"),
            ("ENROLLKIT_DB_PATH", self.storage, "db_path"),
            ("ENROLLKIT_LOG_DIR", self.logging, "dir"),
            ("ENROLLKIT_LOG_LEVEL", self.logging, "level"),
        )
        for variable, section, attr in overrides:
            value = os.environ.get(variable)
            if value:
                setattr(section, attr, value)
        self.validate()
        return self

    def get_db_path(self) -> str:
        """Absolute database path (``:memory:`` is returned unchanged)."""
        if self.storage.db_path == ":memory:":
            return self.storage.db_path
        path = Path(self.storage.db_path)
        if not path.is_absolute():
            path = self.root_path / path
        return str(path)


def load_config(config_path: Path | str) -> EnrollKitConfig:
    """Load EnrollKit configuration from a YAML file.

    Args:
        config_path: Path to enrollkit.yaml file.

    Returns:
        Parsed configuration object.

    Raises:
        ConfigError: If file doesn't exist or is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    return EnrollKitConfig.from_dict(data, config_path.parent)


def find_config(start_path: Path | str | None = None) -> Path | None:
    """Find enrollkit.yaml by walking up the directory tree.

    Args:
        start_path: Starting directory. Defaults to current directory.

    Returns:
        Path to the config file, or None if there is none.
    """
    current = Path.cwd() if start_path is None else Path(start_path)
    current = current.resolve()

    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def resolve_config(config_path: Path | str | None = None) -> EnrollKitConfig:
    """Load the given or discovered config file, or defaults, then apply env overrides."""
    if config_path is None:
        config_path = find_config()
    config = load_config(config_path) if config_path is not None else EnrollKitConfig()
    return config.apply_env()


def create_store(config: EnrollKitConfig) -> KeyValueStore:
    """Build the key-value store named by the storage section."""
    from enrollkit.kv_store import InMemoryKeyValueStore, SQLiteKeyValueStore  # noqa: PLC0415

    if config.storage.backend == "memory":
        return InMemoryKeyValueStore()
    return SQLiteKeyValueStore(config.get_db_path())
