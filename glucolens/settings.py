# glucolens/settings.py
# Centralized configuration for the service.

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

from glucolens.errors import ConfigurationError

load_dotenv(override=False)

STRATEGIES: Tuple[str, ...] = ("single", "two_step")

DEFAULT_MIME_TYPES: Tuple[str, ...] = (
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/heic",
    "image/heif",
)

# Real Gemini keys are 39 characters; anything far shorter is a paste error.
_MIN_KEY_LENGTH = 20


def mask_secret(value: Optional[str]) -> str:
    """Return a display-safe form of a secret, e.g. 'AIza…9xQk'."""
    if not value:
        return "<empty>"
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}…{value[-4:]}"


class Settings:
    """
    All configuration is read from environment variables.
    Do NOT commit secrets; set them in your hosting provider (e.g., Netlify environment variables).
    """

    def __init__(self) -> None:
        # --- API keys ---
        self.GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")

        # --- Model / analysis ---
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        self.ANALYSIS_STRATEGY: str = os.getenv("ANALYSIS_STRATEGY", "single").strip().lower()
        self.EXPLANATION_LANGUAGE: str = os.getenv("EXPLANATION_LANGUAGE", "Korean")

        # --- Time budgets (seconds) ---
        # Upper bound for each individual call to the inference service.
        self.INFERENCE_TIMEOUT_RAW: str = os.getenv("INFERENCE_TIMEOUT", "30")

        # --- Input limits ---
        self.MAX_IMAGE_BYTES_RAW: str = os.getenv("MAX_IMAGE_BYTES", str(20 * 1024 * 1024))
        raw_types = os.getenv("ALLOWED_MIME_TYPES")
        if raw_types:
            self.ALLOWED_MIME_TYPES: Tuple[str, ...] = tuple(
                t.strip().lower() for t in raw_types.split(",") if t.strip()
            )
        else:
            self.ALLOWED_MIME_TYPES = DEFAULT_MIME_TYPES

        # --- Misc ---
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # ------------------------------------------------------------------
    # Parsed values. These raise ConfigurationError instead of ValueError so
    # a bad deployment shows up as a classified 500, not a crash.
    # ------------------------------------------------------------------
    @property
    def INFERENCE_TIMEOUT(self) -> float:
        try:
            value = float(self.INFERENCE_TIMEOUT_RAW)
        except ValueError:
            raise ConfigurationError(detail=f"INFERENCE_TIMEOUT must be a number, got {self.INFERENCE_TIMEOUT_RAW!r}")
        if value <= 0:
            raise ConfigurationError(detail="INFERENCE_TIMEOUT must be greater than 0")
        return value

    @property
    def MAX_IMAGE_BYTES(self) -> int:
        try:
            value = int(self.MAX_IMAGE_BYTES_RAW)
        except ValueError:
            raise ConfigurationError(detail=f"MAX_IMAGE_BYTES must be an integer, got {self.MAX_IMAGE_BYTES_RAW!r}")
        if value <= 0:
            raise ConfigurationError(detail="MAX_IMAGE_BYTES must be greater than 0")
        return value

    @property
    def has_api_key(self) -> bool:
        return bool((self.GEMINI_API_KEY or "").strip())

    def require_api_key(self) -> str:
        """
        Raise a clear error if the Gemini key is missing or obviously malformed.
        The key itself only ever reaches the log in masked form.
        """
        key = (self.GEMINI_API_KEY or "").strip()
        if not key:
            raise ConfigurationError(detail="Missing GEMINI_API_KEY")
        if any(ch.isspace() for ch in key) or len(key) < _MIN_KEY_LENGTH:
            raise ConfigurationError(detail=f"GEMINI_API_KEY looks malformed ({mask_secret(key)})")
        return key

    def require_strategy(self) -> str:
        if self.ANALYSIS_STRATEGY not in STRATEGIES:
            raise ConfigurationError(
                detail=f"ANALYSIS_STRATEGY must be one of {', '.join(STRATEGIES)}, got {self.ANALYSIS_STRATEGY!r}"
            )
        return self.ANALYSIS_STRATEGY

    def require_limits(self) -> Tuple[float, int]:
        """
        Parse the numeric limits up front so a bad value fails the request before any
        network call. Returns (INFERENCE_TIMEOUT, MAX_IMAGE_BYTES).
        """
        return self.INFERENCE_TIMEOUT, self.MAX_IMAGE_BYTES


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Cached accessor for settings.
    Usage:
        from glucolens.settings import get_settings
        st = get_settings()
        st.require_api_key()
    """
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    st = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, st.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
