"""
Configuration constants for the application.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
env_path = Path(__file__).resolve().parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

# Timezone that defines "today" for streaks and the weekly XP window.
# Every user is evaluated in this one convention.
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Europe/Berlin").strip() or "Europe/Berlin"

# Optional JSON file replacing the built-in level and XP reward tables.
# Shape: {"levels": [{"level": 1, "title": "...", "xpRequired": 0}, ...],
#         "rewards": {"station_start": 10, ...}}
GAMIFICATION_CONFIG_FILE = os.getenv("GAMIFICATION_CONFIG_FILE", "").strip()

# Persistence keys for the per-user state blobs.
ENGAGEMENT_KEY = "engagement"
VUCA_STATE_KEY = "vuca-state"


def debug_routes_enabled() -> bool:
    return os.getenv("ENABLE_DEBUG_ROUTES", "0") == "1"
