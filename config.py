"""Application configuration — environment variables and derived constants.

Loads settings from the environment via ``python-dotenv``.  All values are
resolved at import time so other modules can ``from config import …`` without
repeated lookups.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── core ─────────────────────────────────────────────────────────────────────
from core.logger import PollbotLogger

# ── Environment bootstrap ────────────────────────────────────────────────────
load_dotenv()

logger = PollbotLogger.get_logger(__name__)


# ── Helper functions (private) ───────────────────────────────────────────────


def _int_env(name: str, default: int | None, minimum: int = 0) -> int | None:
    """Read an integer variable, falling back to *default* when unset or invalid."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid integer in environment, using default", extra={"variable": name, "default": default})
        return default
    if value < minimum:
        logger.warning("Value below minimum, using default", extra={"variable": name, "default": default})
        return default
    return value


def _csv_env(name: str) -> list[str] | None:
    """Parse a comma-separated variable; ``None`` when unset or empty."""
    raw = os.environ.get(name)
    if not raw:
        return None
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or None


# ── Public constants ─────────────────────────────────────────────────────────

BOT_TOKEN: str | None = os.environ.get("BOT_TOKEN")
API_BASE_URL: str = os.environ.get("API_BASE_URL", "https://api.telegram.org")
HTTP_TIMEOUT: int = _int_env("HTTP_TIMEOUT", 10, minimum=1)
POLL_TIMEOUT: int = _int_env("POLL_TIMEOUT", 30)
POLL_LIMIT: int | None = _int_env("POLL_LIMIT", None, minimum=1)
ALLOWED_UPDATES: list[str] | None = _csv_env("ALLOWED_UPDATES")

SESSION_BACKEND: str = os.environ.get("SESSION_BACKEND", "memory").lower()
REDIS_URL: str | None = os.environ.get("REDIS_URL")
SESSION_DIR: str = os.environ.get("SESSION_DIR", "sessions")
# 0 means sessions never expire.
SESSION_LIFETIME: int = _int_env("SESSION_LIFETIME", 0)

# Empty means everyone may use the bot.
ALLOWED_USERS: list[str] | None = _csv_env("ALLOWED_USERS")
# 0 disables rate limiting.
RATE_LIMIT: int = _int_env("RATE_LIMIT", 0)
RATE_LIMIT_PERIOD: int = _int_env("RATE_LIMIT_PERIOD", 60, minimum=1)
RATE_LIMIT_KEY: str = os.environ.get("RATE_LIMIT_KEY", "chat_user").lower()

LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()


# ── Startup diagnostics ─────────────────────────────────────────────────────

if BOT_TOKEN:
    logger.info("Config loaded: BOT_TOKEN is set", extra={"api_base_url": API_BASE_URL})
else:
    logger.warning("Config loaded: BOT_TOKEN is NOT set")

logger.info(
    "Session settings loaded",
    extra={"session_backend": SESSION_BACKEND, "session_lifetime": SESSION_LIFETIME},
)

logger.info(
    "Access settings loaded",
    extra={
        "allowed_users": len(ALLOWED_USERS or []),
        "rate_limit": RATE_LIMIT,
        "rate_limit_period": RATE_LIMIT_PERIOD,
        "rate_limit_key": RATE_LIMIT_KEY,
    },
)
