import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .models import DEDUPE_MODES


load_dotenv()


@dataclass(frozen=True)
class Settings:
    default_mode: str = "default"
    default_limit: int = 5
    log_level: str = "WARNING"


def get_settings() -> Settings:
    mode = os.getenv("HEADLINE_DEDUPE_MODE", "default").strip().lower() or "default"
    if mode not in DEDUPE_MODES:
        raise RuntimeError(f"Invalid HEADLINE_DEDUPE_MODE in environment or .env: {mode}")

    raw_limit = os.getenv("HEADLINE_LIMIT") or "5"
    try:
        limit = int(raw_limit)
    except ValueError:
        raise RuntimeError(f"HEADLINE_LIMIT must be an integer, got {raw_limit!r}")

    return Settings(
        default_mode=mode,
        default_limit=limit,
        log_level=os.getenv("HEADLINE_LOG_LEVEL", "WARNING").upper(),
    )
