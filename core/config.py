import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

REQUIRED_KEYS: tuple[str, ...] = ("SUPABASE_URL", "SUPABASE_KEY", "RESEND_API_KEY")

DEFAULT_PORT: int = 3000
DEFAULT_PRODUCTS_TABLE: str = "produtos"
DEFAULT_ALERT_EMAIL_FROM: str = "onboarding@resend.dev"
DEFAULT_ALERT_EMAIL_TO: str = "alerts@example.com"
DEFAULT_HTTP_TIMEOUT: float = 10.0

# Logging
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

# Only used by scripts/init_supabase.py
DATABASE_URL: str = os.environ.get("DATABASE_URL", "")


class ConfigError(RuntimeError):
    """Raised when required settings are missing or malformed."""


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_key: str
    resend_api_key: str
    port: int = DEFAULT_PORT
    products_table: str = DEFAULT_PRODUCTS_TABLE
    alert_email_from: str = DEFAULT_ALERT_EMAIL_FROM
    alert_email_to: str = DEFAULT_ALERT_EMAIL_TO
    http_timeout: float = DEFAULT_HTTP_TIMEOUT


def validate_config(env: Mapping[str, str] | None = None) -> list[str]:
    """Return a list of missing required config keys."""
    env = os.environ if env is None else env
    return [key for key in REQUIRED_KEYS if not env.get(key, "").strip()]


def _parse_number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return value


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """
    Build the process settings from the environment.

    Raises ConfigError listing every missing required key, so the caller can
    refuse to start before the HTTP listener is bound.
    """
    env = os.environ if env is None else env

    missing = validate_config(env)
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    return Settings(
        supabase_url=env["SUPABASE_URL"].strip().rstrip("/"),
        supabase_key=env["SUPABASE_KEY"].strip(),
        resend_api_key=env["RESEND_API_KEY"].strip(),
        port=_parse_number(env, "PORT", DEFAULT_PORT, int),
        products_table=env.get("PRODUCTS_TABLE", "").strip() or DEFAULT_PRODUCTS_TABLE,
        alert_email_from=env.get("ALERT_EMAIL_FROM", "").strip() or DEFAULT_ALERT_EMAIL_FROM,
        alert_email_to=env.get("ALERT_EMAIL_TO", "").strip() or DEFAULT_ALERT_EMAIL_TO,
        http_timeout=_parse_number(env, "HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT, float),
    )
