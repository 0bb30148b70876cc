"""Settings and tool-level overrides for the Problem Intake form.

Environment settings come from ``INTAKE_*`` variables or the tool's .env
file. Tool overrides (classification tables, required fields) live in
data/config/config.json and fall back to the hardcoded defaults.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    data_dir: Path = BASE_DIR / "data"
    catalog_path: Path = BASE_DIR / "data" / "form.csv"

    api_base: str = "http://localhost:8000"
    health_timeout: float = 3.0
    submit_timeout: float = 15.0

    text_debounce_seconds: float = 0.3

    model_config = {
        "env_prefix": "INTAKE_",
        "env_file": BASE_DIR / ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    return Settings()


CONFIG_DIR = get_settings().data_dir / "config"


def load_config() -> dict | None:
    """Load the tool's JSON overrides. Returns None if the file doesn't exist."""
    path = CONFIG_DIR / "config.json"
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return None


def save_config(config: dict) -> None:
    """Write the tool's overrides to JSON. Creates dir if needed."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    path = CONFIG_DIR / "config.json"
    path.write_text(json.dumps(config, indent=2, ensure_ascii=False))


def get_config_value(key: str, default: Any) -> Any:
    """Get a single override, with fallback to default."""
    config = load_config()
    if config is None:
        return default
    return config.get(key, default)
