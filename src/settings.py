"""Static configuration for chatbridge.

All user-editable settings (channels, templates, color rules, peers) live in a
single JSON file for quick edits without touching Python.
"""

import json
import os

from core.config import build_relay_config
from core.models import Color

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits at the project root unless CHATBRIDGE_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("CHATBRIDGE_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _project_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Templates, color policies, allowlisted channels and peers for the core relay.
RELAY_CONFIG = build_relay_config(_CONFIG)

# Optional item table used to turn item tags into names on the platform side.
_items_path = _CONFIG.get("items_path")
ITEMS_PATH = _project_path(_items_path) if _items_path else None

# Append-only text log of channel chatter.
_channel_log = _CONFIG.get("channel_log", {})
CHANNEL_LOG_ENABLED = bool(_channel_log.get("enabled", True))
CHANNEL_LOG_PATH = _project_path(_channel_log.get("path", "logs/channels"))

# Telegram has no role colors; admins and owners can be given one here.
ROLE_COLORS = {name: Color.from_hex(value) for name, value in (_CONFIG.get("role_colors") or {}).items()}

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
