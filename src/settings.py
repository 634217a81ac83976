"""Static configuration for feedlens.

Process-level settings (option store location, timings, logging) live in a
single JSON file for quick edits without touching Python. Filter options
themselves live in the option store.
"""

import json
import os

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

CONFIG_PATH = os.getenv("FEEDLENS_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json; a missing file means all defaults."""

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite option store.
_store = _CONFIG.get("store", {})
DB_PATH = _store.get("path") or os.path.join(PROJECT_ROOT, "feedlens.db")
if not os.path.isabs(DB_PATH):
    DB_PATH = os.path.join(PROJECT_ROOT, DB_PATH)

# Initial filter option values, written to the store only where absent.
OPTIONS = _CONFIG.get("options", {})

# Change batching: quiet period and the burst size that forces a pass.
_scheduler = _CONFIG.get("scheduler", {})
DEBOUNCE_MS = int(_scheduler.get("debounce_ms", 250))
MAX_PENDING = int(_scheduler.get("max_pending", 5))

# Menu interaction timings.
_interaction = _CONFIG.get("interaction", {})
MENU_WAIT_MS = int(_interaction.get("menu_wait_ms", 300))
POLL_INTERVAL_MS = int(_interaction.get("poll_interval_ms", 50))
CLOSE_DELAY_MS = int(_interaction.get("close_delay_ms", 100))
CANCEL_DELAY_MS = int(_interaction.get("cancel_delay_ms", 50))
HIDE_DELAY_MS = int(_interaction.get("hide_delay_ms", 150))

# Delay between replayed feed sections in `feedlens run`.
REPLAY_INTERVAL_MS = int(_CONFIG.get("replay_interval_ms", 100))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
