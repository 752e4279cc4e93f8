from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Values are read when an
    instance is created, so entry points build one and pass it down instead of
    business logic reaching into the environment.
    """

    google_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
    )
    gemini_model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-1.5-pro"))
    temperature: float = field(default_factory=lambda: float(os.getenv("MODEL_TEMPERATURE", "0.3")))
    top_p: float = field(default_factory=lambda: float(os.getenv("MODEL_TOP_P", "0.9")))

    port: int = field(default_factory=lambda: int(os.getenv("PORT", "5000")))
    cors_allow_origins: List[str] = field(default_factory=lambda: _env_list("CORS_ALLOW_ORIGINS", "*"))
    search_max_results: int = field(default_factory=lambda: int(os.getenv("SEARCH_MAX_RESULTS", "5")))

    # Client side: where the dealer finder reaches the search proxy
    search_api_url: str = field(
        default_factory=lambda: os.getenv("SEARCH_API_URL", "http://127.0.0.1:5000")
    )
    search_timeout: float = field(default_factory=lambda: float(os.getenv("SEARCH_TIMEOUT", "10.0")))

    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("ECOSHIELD_DATA_DIR", str(Path.home() / ".ecoshield"))
        ).expanduser()
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def cors_is_wildcard(self) -> bool:
        return not self.cors_allow_origins or "*" in self.cors_allow_origins


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
