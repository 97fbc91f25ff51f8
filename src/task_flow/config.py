"""Configuration file support for Task Flow."""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_FILE = Path.home() / ".config" / "task-flow" / "task-flow.toml"

DEFAULT_THEME = "catppuccin-mocha"
DEFAULT_COMPLETED_DATE_FORMAT = "%m/%d/%y"
DEFAULT_BACKEND = "sqlite"
DEFAULT_DATABASE = "tasks.db"
DEFAULT_LOG_DIR = Path.home() / ".local" / "state" / "task-flow"
DEFAULT_TIMEOUT = 15.0

BACKENDS = ("memory", "sqlite", "remote")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RemoteConfig:
    """Connection settings for the hosted record API."""

    base_url: str = ""
    api_key: str | None = None
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class LoggingConfig:
    """Where and how verbosely to log."""

    level: str = "INFO"
    directory: Path = DEFAULT_LOG_DIR


@dataclass
class Config:
    """Application configuration."""

    theme: str = DEFAULT_THEME
    completed_date_format: str = DEFAULT_COMPLETED_DATE_FORMAT
    backend: str = DEFAULT_BACKEND
    database: Path = field(default_factory=lambda: Path.cwd() / DEFAULT_DATABASE)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path | None = None) -> Config:
    """Load configuration from the config file.

    Returns the default configuration if:
    - The config file doesn't exist
    - The config file has invalid TOML syntax
    - The file cannot be read

    Args:
        path: Config file to read. Defaults to ``CONFIG_FILE``.

    Returns:
        Config object with loaded or default values.
    """
    path = path or CONFIG_FILE
    if not path.exists():
        return Config()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        # Invalid TOML or read error - use defaults
        return Config()

    return _parse_config(data)


def _parse_config(data: dict[str, Any]) -> Config:
    """Parse configuration from a dictionary.

    Values with the wrong type are ignored and keep their defaults.

    Args:
        data: Dictionary from parsed TOML file.

    Returns:
        Config object with parsed values.
    """
    config = Config()

    if "theme" in data and isinstance(data["theme"], str):
        config.theme = data["theme"]

    if "completed_date_format" in data and isinstance(data["completed_date_format"], str):
        config.completed_date_format = data["completed_date_format"]

    if "backend" in data and isinstance(data["backend"], str):
        value = data["backend"].strip().lower()
        if value in BACKENDS:
            config.backend = value

    # Relative database paths resolve against the working directory
    if "database" in data and isinstance(data["database"], str) and data["database"]:
        config.database = Path(data["database"]).expanduser()
        if not config.database.is_absolute():
            config.database = Path.cwd() / config.database

    if "remote" in data and isinstance(data["remote"], dict):
        remote_data = data["remote"]
        if isinstance(remote_data.get("base_url"), str):
            config.remote.base_url = remote_data["base_url"]
        if isinstance(remote_data.get("api_key"), str):
            config.remote.api_key = remote_data["api_key"]
        timeout = remote_data.get("timeout")
        if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
            config.remote.timeout = float(timeout)

    if "logging" in data and isinstance(data["logging"], dict):
        logging_data = data["logging"]
        level = logging_data.get("level")
        if isinstance(level, str) and level.upper() in LOG_LEVELS:
            config.logging.level = level.upper()
        if isinstance(logging_data.get("directory"), str):
            config.logging.directory = Path(logging_data["directory"]).expanduser()

    return config
