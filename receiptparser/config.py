import logging
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Extraction windows
    TOTAL_SEARCH_WINDOW: int = 12  # bottom lines searched for a labeled total
    MERCHANT_SEARCH_WINDOW: int = 8  # top lines searched for the store name

    # Date parsing: locale variants tried in order for every format template.
    # "current" resolves from the process LC_TIME locale.
    DATE_LOCALES: List[str] = ["en_US_POSIX", "current", "en_GB"]

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @field_validator("TOTAL_SEARCH_WINDOW", "MERCHANT_SEARCH_WINDOW")
    @classmethod
    def _window_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("search window must be at least 1 line")
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return level


settings = Settings()

_logging_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stderr handler to the ``receiptparser`` logger namespace (once)."""
    global _logging_configured

    logger = logging.getLogger("receiptparser")
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if _logging_configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s [%(name)s] %(message)s"))
    logger.addHandler(handler)
    _logging_configured = True
