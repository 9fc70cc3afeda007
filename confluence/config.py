"""Confluence application configuration.

Loads .env variables into a typed config object.  Strategy parameters are
not read here: they come from an optional JSON settings file and are
validated by ``StrategySettings``.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    log_level: str
    strategy_name: str
    settings_path: Optional[str]  # JSON file of custom strategy settings
    default_exchange: str
    position_size: float


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` naming the variable when a numeric variable
    cannot be parsed.
    """
    load_dotenv(dotenv_path=env_path)

    return Config(
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        strategy_name=os.environ.get("STRATEGY_NAME", "multiindicator"),
        settings_path=os.environ.get("STRATEGY_SETTINGS_PATH") or None,
        default_exchange=os.environ.get("DEFAULT_EXCHANGE", "kraken"),
        position_size=_float_var("POSITION_SIZE", "1.0"),
    )


def _float_var(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {raw!r}") from None


def load_custom_settings(path: str | Path) -> dict[str, Any]:
    """Read a JSON object of custom strategy settings.

    Key and value validation is left to ``StrategySettings``.

    Raises ``ValueError`` when the file does not hold a JSON object.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    return data
