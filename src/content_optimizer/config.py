"""
Configuration - .env secrets plus data/optimizer_config.json settings.

Precedence: environment overrides > optimizer_config.json > defaults.
"""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
BASE_DIR = Path(__file__).parent.parent.parent
DATA_DIR = BASE_DIR / "data"
CONFIG_PATH = DATA_DIR / "optimizer_config.json"

DEFAULTS = {
    "text_model": "gemini-2.5-flash",
    "image_model": "gemini-2.5-flash-image",
    "language": "en",
    "style_strength": 80,
    "output_dir": "data/output",
}

ENV_OVERRIDES = {
    "text_model": "GEMINI_TEXT_MODEL",
    "image_model": "GEMINI_IMAGE_MODEL",
}


def get_api_key() -> str | None:
    return os.getenv("GEMINI_API_KEY")


def deep_merge(base: dict, update: dict) -> None:
    """Deep merge update into base dict, modifying base in place."""
    for key, value in update.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value


def load_config(path: Path | None = None) -> dict:
    """Load settings, merging the optional JSON file and env overrides over defaults."""
    config = dict(DEFAULTS)
    path = path or CONFIG_PATH
    if path.exists():
        with open(path, "r", encoding="utf-8-sig") as f:
            deep_merge(config, json.load(f))

    for key, env_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config[key] = value
    return config


def resolve_output_dir(config: dict) -> Path:
    out = Path(config.get("output_dir", DEFAULTS["output_dir"]))
    return out if out.is_absolute() else BASE_DIR / out
