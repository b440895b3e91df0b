# core/settings.py
import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime knobs read from the environment (.env supported)."""

    log_level: str = "INFO"
    log_to_file: bool = True
    default_api_token: str = "<token>"
    api_response_time_ms: int = 2000
    api_concurrent_requests: int = 5
    low_confidence_threshold: float = 0.5
    mixed_threshold: float = 0.6
    persist_test_cases: bool = True
    analyzer_headless: bool = True
    analyzer_timeout_ms: int = 30000

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_to_file=_env_bool("LOG_TO_FILE", True),
            default_api_token=os.getenv("DEFAULT_API_TOKEN", "<token>"),
            api_response_time_ms=int(os.getenv("API_RESPONSE_TIME_MS", "2000")),
            api_concurrent_requests=int(os.getenv("API_CONCURRENT_REQUESTS", "5")),
            low_confidence_threshold=float(os.getenv("LOW_CONFIDENCE_THRESHOLD", "0.5")),
            mixed_threshold=float(os.getenv("MIXED_THRESHOLD", "0.6")),
            persist_test_cases=_env_bool("PERSIST_TEST_CASES", True),
            analyzer_headless=_env_bool("ANALYZER_HEADLESS", True),
            analyzer_timeout_ms=int(os.getenv("ANALYZER_TIMEOUT_MS", "30000")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
