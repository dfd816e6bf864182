# orderbrain/config.py
"""
Settings

Environment-driven configuration for the ordering brain.

Values are read once at import time (after loading a local .env file) and
exposed through the module-level `settings` singleton. Components take
explicit constructor arguments that default to these values, so tests can
wire their own without touching the environment.
"""

from __future__ import annotations

import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in {"0", "false", "no", "off", ""}


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings(BaseModel):
    # Probabilistic intent source
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
    LLM_ROUTER_MODEL: str = os.getenv("LLM_ROUTER_MODEL", "gpt-4o-mini")
    LLM_ENABLED: bool = _env_bool("LLM_ENABLED", "1")
    CLASSIFIER_TIMEOUT_S: float = float(os.getenv("CLASSIFIER_TIMEOUT_S", "4.0"))
    CLASSIFIER_MIN_CONFIDENCE: float = float(os.getenv("CLASSIFIER_MIN_CONFIDENCE", "0.55"))
    BOOST_TRUST_CONFIDENCE: float = float(os.getenv("BOOST_TRUST_CONFIDENCE", "0.8"))

    # Sessions
    SESSION_TTL_MINUTES: int = int(os.getenv("SESSION_TTL_MINUTES", "60"))
    SESSION_MAX_ENTRIES: int = int(os.getenv("SESSION_MAX_ENTRIES", "10000"))
    HISTORY_MAX_TURNS: int = int(os.getenv("HISTORY_MAX_TURNS", "50"))
    MAX_INPUT_CHARS: int = int(os.getenv("MAX_INPUT_CHARS", "1000"))

    # Catalog source
    CATALOG_BASE_URL: str = os.getenv("CATALOG_BASE_URL", "").strip()
    CATALOG_SEED_PATH: str = os.getenv("CATALOG_SEED_PATH", "").strip()
    CATALOG_REFRESH_SECONDS: int = int(os.getenv("CATALOG_REFRESH_SECONDS", "300"))

    # Best-effort webhooks
    ORDER_WEBHOOK_URL: str = os.getenv("ORDER_WEBHOOK_URL", "").strip()
    ANALYTICS_WEBHOOK_URL: str = os.getenv("ANALYTICS_WEBHOOK_URL", "").strip()

    # Service
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS: List[str] = _env_list("CORS_ORIGINS", "*")


settings = Settings()
