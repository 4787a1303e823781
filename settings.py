# Runtime configuration, read from the environment
import logging
import os
from dataclasses import dataclass

DEFAULT_DIFF_LIMIT = 20_000
DEFAULT_CACHE_TTL  = 6 * 60 * 60
LEGISCAN_URL       = "https://api.legiscan.com/"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    legiscan_api_key: str = ""
    legiscan_base_url: str = LEGISCAN_URL
    # longest side (characters) that still gets a line diff
    diff_limit: int = DEFAULT_DIFF_LIMIT
    cache_ttl: int = DEFAULT_CACHE_TTL
    request_timeout: float = 60.0
    max_attempts: int = 3
    backoff: float = 0.5
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        s = cls(
            legiscan_api_key=os.environ.get("LEGISCAN_API_KEY", ""),
            legiscan_base_url=os.environ.get("LEGISCAN_BASE_URL", LEGISCAN_URL),
            diff_limit=_env_int("BILLTRACER_DIFF_LIMIT", DEFAULT_DIFF_LIMIT),
            cache_ttl=_env_int("BILLTRACER_CACHE_TTL", DEFAULT_CACHE_TTL),
            request_timeout=_env_float("BILLTRACER_TIMEOUT", 60.0),
            max_attempts=_env_int("BILLTRACER_MAX_ATTEMPTS", 3),
            backoff=_env_float("BILLTRACER_BACKOFF", 0.5),
            log_level=os.environ.get("BILLTRACER_LOG_LEVEL", "INFO").upper(),
        )
        if s.diff_limit < 0:
            raise ValueError("BILLTRACER_DIFF_LIMIT must not be negative")
        if s.max_attempts < 1:
            raise ValueError("BILLTRACER_MAX_ATTEMPTS must be at least 1")
        return s


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
