import os
from dotenv import load_dotenv

# =====================================
# Global configuration for SportsFest Live
# =====================================

# Load .env from project root (if present)
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, "1" if default else "0").lower()
    return raw in ("1", "true", "yes", "on")


# --- Database ---
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DB_PATH = os.path.join(BASE_DIR, "sportsfest.db")

DATABASE_URL: str = _get_env("DATABASE_URL", f"sqlite+aiosqlite:///{DB_PATH}")
SQL_ECHO: bool = _get_env_bool("SQL_ECHO", False)

# --- Admin sessions ---
# Lifetime of a login token issued by /auth/login
ADMIN_TOKEN_TTL_HOURS: int = _get_env_int("ADMIN_TOKEN_TTL_HOURS", 12)

# --- Live broadcast ---
# Per-subscriber backlog; when full the oldest queued event is dropped
BROADCAST_QUEUE_SIZE: int = _get_env_int("BROADCAST_QUEUE_SIZE", 100)

# --- Logging ---
LOG_LEVEL: str = _get_env("LOG_LEVEL", "INFO").upper()

# TEST_MODE:
# When True, testing features are enabled.
# Example uses:
#   - Open /auth/register even when admins exist
TEST_MODE: bool = _get_env_bool("TEST_MODE", False)
