# =============================================================================
# core/config.py  -  Configuration Context
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Resolves environment variables into one frozen Settings object.  It is
#   built once at process start (main.py) and handed to every component
#   that needs it.  Nothing mutates it afterwards.
#
# PROVIDER CREDENTIALS:
#   GOOGLE_API_KEY and GOOGLE_CSE_ID are optional.  When either is missing
#   the search provider is DISABLED, not broken: startup still succeeds and
#   Wikipedia keeps working.  Only malformed values fail startup.
#
# UNITS:
#   Cache TTLs and the request timeout are in SECONDS.
# =============================================================================

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from core.errors import ConfigError


LANGUAGE_RE = re.compile(r"^[a-z]{2,3}(-[a-z]+)?$")


def is_language_code(value) -> bool:
    """True for a Wikipedia edition code such as "en" or "zh-yue"."""
    return isinstance(value, str) and LANGUAGE_RE.match(value) is not None


@dataclass(frozen=True)
class Settings:
    """Read-only bag of resolved settings, shared for the process lifetime."""

    # --- Provider credentials (None = provider disabled) ---
    google_api_key: Optional[str] = None
    google_cse_id: Optional[str] = None

    # --- Cache sizing ---
    # Search results are costlier upstream (quota-limited), so they get the
    # larger, longer-lived pool.
    search_cache_max: int = 500
    search_cache_ttl_s: float = 30 * 60
    wikipedia_cache_max: int = 100
    wikipedia_cache_ttl_s: float = 5 * 60

    # --- Upstream behaviour ---
    default_language: str = "en"
    request_timeout_s: float = 10.0
    retry_attempts: int = 3
    user_agent: str = "research-mcp-server/1.0"

    # --- Server identity ---
    server_name: str = "research-mcp-server"
    log_level: str = "INFO"

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_api_key and self.google_cse_id)


def _optional(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name, "").strip()
    return value or None


def _int(environ: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        environ: Mapping to read from.  Defaults to os.environ (call
                 load_dotenv() first if a .env file should apply).

    Raises:
        ConfigError: If a numeric value or the default language is malformed.
    """
    if environ is None:
        environ = os.environ

    language = environ.get("WIKIPEDIA_DEFAULT_LANGUAGE", "").strip().lower() or "en"
    if not is_language_code(language):
        raise ConfigError(
            f"WIKIPEDIA_DEFAULT_LANGUAGE must look like 'en' or 'zh-yue', got {language!r}"
        )

    return Settings(
        google_api_key=_optional(environ, "GOOGLE_API_KEY"),
        google_cse_id=_optional(environ, "GOOGLE_CSE_ID"),
        search_cache_max=_int(environ, "SEARCH_CACHE_MAX", 500),
        search_cache_ttl_s=_float(environ, "SEARCH_CACHE_TTL", 30 * 60),
        wikipedia_cache_max=_int(environ, "WIKIPEDIA_CACHE_MAX", 100),
        wikipedia_cache_ttl_s=_float(environ, "WIKIPEDIA_CACHE_TTL", 5 * 60),
        default_language=language,
        request_timeout_s=_float(environ, "REQUEST_TIMEOUT", 10.0),
        retry_attempts=_int(environ, "RETRY_ATTEMPTS", 3),
        user_agent=_optional(environ, "USER_AGENT") or "research-mcp-server/1.0",
        server_name=_optional(environ, "SERVER_NAME") or "research-mcp-server",
        log_level=(_optional(environ, "LOG_LEVEL") or "INFO").upper(),
    )
