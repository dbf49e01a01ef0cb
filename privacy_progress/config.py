"""Configuration management"""
import logging
import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

# Storage
DATA_PATH: Path = Path(os.getenv("DATA_PATH", "./data"))

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Calendar-day math (streaks, challenge days) happens in this zone
# unless the session passes its own
DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "UTC")

# Remote mirror (Supabase / PostgREST)
REMOTE_SYNC_ENABLED: bool = os.getenv("REMOTE_SYNC_ENABLED", "true").lower() == "true"
SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")
REMOTE_TIMEOUT: float = float(os.getenv("REMOTE_TIMEOUT", "10"))
REMOTE_MAX_RETRIES: int = int(os.getenv("REMOTE_MAX_RETRIES", "2"))
REMOTE_BREAKER_FAIL_MAX: int = int(os.getenv("REMOTE_BREAKER_FAIL_MAX", "5"))
REMOTE_BREAKER_RESET_TIMEOUT: int = int(os.getenv("REMOTE_BREAKER_RESET_TIMEOUT", "60"))


def remote_configured() -> bool:
    """True when a remote mirror should be used for new sessions"""
    return REMOTE_SYNC_ENABLED and bool(SUPABASE_URL)


# Validation
def validate_config() -> None:
    """Validate configuration"""
    from privacy_progress.exceptions import ConfigurationError

    if REMOTE_SYNC_ENABLED and SUPABASE_URL and not SUPABASE_ANON_KEY:
        raise ConfigurationError(
            "SUPABASE_ANON_KEY is required when SUPABASE_URL is set",
            config_key="SUPABASE_ANON_KEY"
        )
    try:
        ZoneInfo(DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(
            f"Unknown timezone '{DEFAULT_TIMEZONE}'",
            config_key="DEFAULT_TIMEZONE"
        )
    if REMOTE_TIMEOUT <= 0:
        raise ConfigurationError("REMOTE_TIMEOUT must be positive", config_key="REMOTE_TIMEOUT")
    if REMOTE_BREAKER_FAIL_MAX <= 0:
        raise ConfigurationError(
            "REMOTE_BREAKER_FAIL_MAX must be positive",
            config_key="REMOTE_BREAKER_FAIL_MAX"
        )
    # Zero retries is allowed (single attempt)
    if REMOTE_MAX_RETRIES < 0:
        raise ConfigurationError(
            "REMOTE_MAX_RETRIES cannot be negative",
            config_key="REMOTE_MAX_RETRIES"
        )


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging for host applications embedding the engine"""
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, level.upper(), logging.INFO)
    )
