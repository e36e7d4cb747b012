"""Central configuration loader for Frontier Analyst."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root is the parent of the frontier/ package
PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")


def load_settings(path: Path | None = None) -> dict:
    """Load settings from configs/settings.yaml (empty dict if absent)."""
    settings_path = path or PROJECT_ROOT / "configs" / "settings.yaml"
    if not settings_path.exists():
        return {}
    with open(settings_path) as f:
        return yaml.safe_load(f) or {}


SETTINGS = load_settings()


def portfolio_setting(key: str, default):
    """Shortcut for values under the ``portfolio`` section."""
    return SETTINGS.get("portfolio", {}).get(key, default)


# --- API Keys ---
class Keys:
    TWELVE_DATA = os.getenv("TWELVE_DATA_API_KEY", "")


# --- Paths ---
class Paths:
    ROOT = PROJECT_ROOT
    DATA_CACHE = PROJECT_ROOT / "data" / "cache"
