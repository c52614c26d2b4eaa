"""Configuration management for the AirMath solver service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


def _get_base_dir() -> Path:
    """Project root (one level above ``core``)."""
    return Path(__file__).resolve().parents[1]


# Load .env from the project root before reading any variable
_env_path = _get_base_dir() / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


def _get_api_key() -> str | None:
    """API key for the remote recognizer, provider-specific name as fallback."""
    return os.getenv("AIRMATH_API_KEY") or os.getenv("GEMINI_API_KEY")


@dataclass
class Settings:
    """Application settings."""

    base_dir: Path = _get_base_dir()
    data_dir: Path = Path(os.getenv("AIRMATH_DATA_DIR", str(base_dir / "data")))
    history_file: Path = data_dir / "history.json"
    host: str = os.getenv("AIRMATH_HOST", "127.0.0.1")
    port: int = int(os.getenv("AIRMATH_PORT", "8000"))
    log_level: str = os.getenv("AIRMATH_LOG_LEVEL", "INFO")
    history_limit: int = int(os.getenv("AIRMATH_HISTORY_LIMIT", "50"))
    ai_api_key: str | None = _get_api_key()
    ai_model: str = os.getenv("AIRMATH_MODEL", "gemini-1.5-flash")
    ai_base_url: str = os.getenv("AIRMATH_BASE_URL", GEMINI_OPENAI_BASE_URL)
    ai_timeout: float = float(os.getenv("AIRMATH_TIMEOUT", "30"))
    ai_temperature: float = float(os.getenv("AIRMATH_TEMPERATURE", "0.2"))
    ai_top_p: float = float(os.getenv("AIRMATH_TOP_P", "0.8"))
    ai_max_tokens: int = int(os.getenv("AIRMATH_MAX_TOKENS", "2048"))
    max_image_side: int = int(os.getenv("AIRMATH_MAX_IMAGE_SIDE", "1600"))


settings = Settings()
