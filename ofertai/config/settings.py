# ofertai/config/settings.py

"""Central configuration for the OfertAi relay bot."""

import os
from pathlib import Path

from croniter import croniter
from dotenv import load_dotenv

from ofertai.errors import ConfigurationError

load_dotenv()


def _env_str(name: str, default: str | None = None) -> str | None:
    """Return a stripped env value, treating blanks as unset."""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


# Integer variables that were set but did not parse; reported by validate()
_invalid_env: list[str] = []


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        _invalid_env.append(f"{name}={raw!r}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = _env_str(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


class Settings:
    """Central configuration for the OfertAi relay bot."""

    # --- Telegram ---
    TELEGRAM_TOKEN: str | None = _env_str("TELEGRAM_TOKEN")
    TELEGRAM_API_BASE: str = "https://api.telegram.org"
    DELIVERY_TIMEOUT: int = _env_int("DELIVERY_TIMEOUT", 20)
    POLL_TIMEOUT: int = _env_int("POLL_TIMEOUT", 30)
    POLL_RETRY_DELAY: float = 5.0       # Seconds to wait after a failed poll
    BROADCAST_CHAT_ID: str | None = _env_str("BROADCAST_CHAT_ID")
    BUY_BUTTON_LABEL: str = "Comprar agora"

    # --- Search ---
    SEARCH_API_URL: str = _env_str(
        "SEARCH_API_URL",
        "https://api.mercadolibre.com/sites/MLB/search",
    ) or ""
    SEARCH_TERMS: str = _env_str(
        "SEARCH_TERMS", "smartphone,notebook"
    ) or ""
    SEARCH_LIMIT: int = _env_int("SEARCH_LIMIT", 5)
    SEARCH_SORT: str = _env_str(
        "SEARCH_SORT", "sold_quantity_desc"
    ) or ""
    REQUEST_TIMEOUT: int = _env_int("REQUEST_TIMEOUT", 15)
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.8",
    }

    # --- Scheduling ---
    CRON_SCHEDULE: str = _env_str(
        "CRON_SCHEDULE", "0 */2 * * *"
    ) or ""

    # --- Dedup cache ---
    DEDUP_MAX_ENTRIES: int = _env_int("DEDUP_MAX_ENTRIES", 2000)
    DEDUP_EVICT_COUNT: int = _env_int("DEDUP_EVICT_COUNT", 1000)
    DEDUP_EVICTION: str = (
        _env_str("DEDUP_EVICTION", "recency") or "recency"
    ).lower()
    DEDUP_POLICIES: tuple[str, ...] = ("recency", "insertion")

    # --- Caption ---
    MIN_DISCOUNT_PERCENT: int = 5       # Below this the plain price is shown
    CAPTION_MAX_LENGTH: int = 1024      # Telegram limit on visible caption text

    # --- Health endpoint ---
    ENABLE_HEALTH_SERVER: bool = _env_bool("ENABLE_HEALTH_SERVER", True)
    HEALTH_HOST: str = _env_str("HEALTH_HOST", "0.0.0.0") or "0.0.0.0"
    PORT: int = _env_int("PORT", 3000)
    HEALTH_BODY: str = "OK - OfertAi health check\n"

    # --- Logging ---
    LOG_LEVEL: str = (_env_str("LOG_LEVEL", "INFO") or "INFO").upper()

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"

    INVALID_ENV: list[str] = _invalid_env

    @classmethod
    def validate(cls, require_token: bool = True) -> None:
        """Raise ConfigurationError when the configuration is unusable."""
        if cls.INVALID_ENV:
            raise ConfigurationError(
                "Expected integer values for: " + ", ".join(cls.INVALID_ENV)
            )
        if require_token and not cls.TELEGRAM_TOKEN:
            raise ConfigurationError(
                "TELEGRAM_TOKEN must be set (environment or .env)"
            )
        if not croniter.is_valid(cls.CRON_SCHEDULE):
            raise ConfigurationError(
                f"Invalid CRON_SCHEDULE: {cls.CRON_SCHEDULE!r}"
            )
        if cls.DEDUP_EVICTION not in cls.DEDUP_POLICIES:
            raise ConfigurationError(
                f"DEDUP_EVICTION must be one of {cls.DEDUP_POLICIES}, "
                f"got {cls.DEDUP_EVICTION!r}"
            )
        if cls.DEDUP_MAX_ENTRIES < 1 or cls.DEDUP_EVICT_COUNT < 1:
            raise ConfigurationError(
                "DEDUP_MAX_ENTRIES and DEDUP_EVICT_COUNT must be >= 1"
            )
        if not 0 < cls.PORT < 65536:
            raise ConfigurationError(f"PORT out of range: {cls.PORT}")
