import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv


DEFAULT_DATA_FILE = "./data/study.json"


def _split_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return ["*"]
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from environment variables (and a .env file if present)."""
    data_file: str = DEFAULT_DATA_FILE
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    log_file: Optional[str] = None
    cache_ttl_seconds: int = 300
    cache_max_entries: int = 1000

    # PUBLIC_INTERFACE
    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the process environment.

        Recognised variables: STUDY_DATA_FILE, CORS_ALLOW_ORIGINS, LOG_LEVEL,
        LOG_FILE, CACHE_TTL_SECONDS, CACHE_MAX_ENTRIES.
        """
        return cls(
            data_file=os.getenv("STUDY_DATA_FILE") or DEFAULT_DATA_FILE,
            cors_allow_origins=_split_origins(os.getenv("CORS_ALLOW_ORIGINS")),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
            log_file=os.getenv("LOG_FILE") or None,
            cache_ttl_seconds=_int_from_env("CACHE_TTL_SECONDS", 300),
            cache_max_entries=_int_from_env("CACHE_MAX_ENTRIES", 1000),
        )


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings, loading variables from a .env file first."""
    load_dotenv()
    return Settings.from_env()
