"""
Environment configuration.

A ``.env`` file in the working directory is loaded first; real environment
variables win over it.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_URL = "https://fm-backend.founder-match.in"


def load_env() -> None:
    """Load .env from the working directory if present."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass
class Settings:
    api_url: str = DEFAULT_API_URL
    user_id: Optional[str] = None
    page_size: int = 20
    low_water_mark: int = 5
    debounce_seconds: float = 0.5
    exit_delay: float = 0.0
    timeout: float = 15.0
    max_retries: int = 2
    db_path: Path = Path("data/founderfeed.db")
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        log_dir = os.getenv("FOUNDERFEED_LOG_DIR")
        return cls(
            api_url=os.getenv("FOUNDERFEED_API_URL") or DEFAULT_API_URL,
            user_id=os.getenv("FOUNDERFEED_USER_ID") or None,
            page_size=_int("FOUNDERFEED_PAGE_SIZE", 20),
            low_water_mark=_int("FOUNDERFEED_LOW_WATER_MARK", 5),
            debounce_seconds=_float("FOUNDERFEED_DEBOUNCE_SECONDS", 0.5),
            exit_delay=_float("FOUNDERFEED_EXIT_DELAY", 0.0),
            timeout=_float("FOUNDERFEED_TIMEOUT", 15.0),
            max_retries=_int("FOUNDERFEED_MAX_RETRIES", 2),
            db_path=Path(os.getenv("FOUNDERFEED_DB") or "data/founderfeed.db"),
            log_level=os.getenv("FOUNDERFEED_LOG_LEVEL") or "INFO",
            log_dir=Path(log_dir) if log_dir else None,
        )
