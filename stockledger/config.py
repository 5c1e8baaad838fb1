"""Configuration loading for stockledger.

Settings live in a TOML file, by default ``~/.config/stockledger/config.toml``.
The directory can be moved with the ``STOCKLEDGER_HOME`` environment variable.
"""

import os
from pathlib import Path
from typing import Optional

import toml

from stockledger.errors import ValidationError

DEFAULT_TIMEOUT = 5.0
DEFAULT_LOG_LEVEL = "WARNING"


def get_config_dir() -> Path:
    """Get the configuration directory."""
    home = os.environ.get("STOCKLEDGER_HOME")
    if home:
        return Path(home).expanduser()
    return Path.home() / ".config" / "stockledger"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from a TOML file.

    Args:
        config_path: File to read. Defaults to ``get_config_path()``.

    Returns:
        Parsed configuration, or an empty dict if the file does not exist.

    Raises:
        ValidationError: If the file cannot be parsed.
    """
    path = Path(config_path) if config_path else get_config_path()
    if not path.exists():
        return {}

    try:
        return toml.load(path)
    except (toml.TomlDecodeError, OSError) as exc:
        raise ValidationError("config", f"Cannot read config file {path}: {exc}") from exc


def get_db_path(config: dict) -> Path:
    """Get the database path from config, falling back to the config dir."""
    db_path = config.get("storage", {}).get("db_path")
    if db_path:
        return Path(db_path).expanduser()
    return get_config_dir() / "ledger.db"


def get_timeout(config: dict) -> float:
    """Get the SQLite busy timeout in seconds.

    Raises:
        ValidationError: If the timeout is not a number.
    """
    timeout = config.get("storage", {}).get("timeout", DEFAULT_TIMEOUT)
    try:
        return float(timeout)
    except (TypeError, ValueError) as exc:
        raise ValidationError("config", f"Invalid storage timeout: {timeout!r}") from exc


def get_log_level(config: dict) -> str:
    return str(config.get("logging", {}).get("level", DEFAULT_LOG_LEVEL))


def get_prices(config: dict) -> dict[str, float]:
    """Get the static price table from config.

    Raises:
        ValidationError: If a price is not a number.
    """
    prices = {}
    for symbol, price in config.get("prices", {}).items():
        try:
            prices[str(symbol).strip().upper()] = float(price)
        except (TypeError, ValueError) as exc:
            raise ValidationError("config", f"Invalid price for {symbol}: {price!r}") from exc
    return prices
