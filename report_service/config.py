"""
Report Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class ReportSettings(BaseSettings):
    """
    Report service configuration with validation.

    All settings can be overridden via environment variables.
    """

    # === Letterhead ===
    letterhead_path: Optional[str] = Field(
        default=None,
        description="Filesystem path to the letterhead PDF (unset disables the overlay)"
    )
    letterhead_preserve_aspect: bool = Field(
        default=False,
        description="Scale content uniformly into the safe area instead of stretching it"
    )

    # === Rendering engine ===
    max_concurrent_pdfs: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum concurrent browser sessions (1-50)"
    )
    playwright_timeout: int = Field(
        default=30000,
        ge=1000,
        le=300000,
        description="Playwright page operation timeout in milliseconds"
    )
    render_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=600,
        description="Upper bound for a whole render, including waiting for a session"
    )
    playwright_headless: bool = Field(
        default=True,
        description="Run Chromium headless"
    )

    # === Document ===
    document_language: str = Field(
        default="tr",
        description="Value of the lang attribute of the rendered document"
    )

    # === Logging ===
    log_level: str = Field(
        default="INFO",
        description="Root log level: DEBUG, INFO, WARNING, ERROR"
    )

    @field_validator("letterhead_path")
    @classmethod
    def blank_path_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty LETTERHEAD_PATH the same as an absent one."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known value."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(allowed))}")
        return v_upper

    @property
    def letterhead_file(self) -> Optional[Path]:
        """Resolved letterhead path, or None when no letterhead is configured."""
        if not self.letterhead_path:
            return None
        return Path(self.letterhead_path).expanduser().resolve()

    def validate_letterhead_config(self) -> List[str]:
        """
        Check the letterhead configuration.

        A missing letterhead never fails a request, so these are warnings only.
        """
        issues = []
        letterhead = self.letterhead_file
        if letterhead is None:
            return issues
        if not letterhead.exists():
            issues.append(f"WARNING: LETTERHEAD_PATH does not exist: {letterhead}")
        elif letterhead.suffix.lower() != ".pdf":
            issues.append(f"WARNING: LETTERHEAD_PATH is not a .pdf file: {letterhead}")
        return issues

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # LETTERHEAD_PATH = letterhead_path


@lru_cache()
def get_settings() -> ReportSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    Use this function to access configuration throughout the app.
    """
    return ReportSettings()


def validate_config_on_startup() -> None:
    """
    Validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    Logs warnings for non-critical issues.
    """
    try:
        settings = get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    for issue in settings.validate_letterhead_config():
        logger.warning(issue)

    logger.info("Configuration loaded:")
    logger.info(f"  letterhead_path={settings.letterhead_file or 'not configured'}")
    logger.info(f"  letterhead_preserve_aspect={settings.letterhead_preserve_aspect}")
    logger.info(f"  max_concurrent_pdfs={settings.max_concurrent_pdfs}")
    logger.info(f"  render_timeout={settings.render_timeout_seconds}s")
    logger.info(f"  playwright_timeout={settings.playwright_timeout}ms")
