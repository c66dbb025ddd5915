from __future__ import annotations

import os
from pathlib import Path
from typing import List, Tuple


def _parse_seed_users(raw: str) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk or ":" not in chunk:
            continue
        username, password = chunk.split(":", 1)
        username = username.strip()
        if username and password:
            pairs.append((username, password))
    return pairs


class Settings:
    """Centralized configuration for the diet board backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        self.data_root: Path = Path(
            os.environ.get("DIETBOARD_DATA_ROOT") or (repo_root / "data")
        ).expanduser()
        self.db_path: Path = Path(
            os.environ.get("DIETBOARD_DB_PATH") or (self.data_root / "diet.db")
        ).expanduser()
        # The two household accounts; passwords are compared as stored.
        self.seed_users: List[Tuple[str, str]] = _parse_seed_users(
            os.environ.get("DIETBOARD_SEED_USERS", "tainara:laquie,raphael:laquie")
        )
        self.max_upload_mb: int = int(os.environ.get("DIETBOARD_MAX_UPLOAD_MB") or "20")
        self.log_level: str = (os.environ.get("DIETBOARD_LOG_LEVEL") or "INFO").upper()
        self.host: str = os.environ.get("DIETBOARD_HOST") or "127.0.0.1"
        self.port: int = int(os.environ.get("DIETBOARD_PORT") or "8000")

        # ---- Generative AI (Gemini REST) ----
        self.gemini_api_key: str | None = os.environ.get("GEMINI_API_KEY") or None
        self.gemini_model: str = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")
        self.gemini_base_url: str = os.environ.get(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        )
        self.gemini_timeout: float = float(os.environ.get("GEMINI_TIMEOUT", "60"))
        self.gemini_temperature: float = float(os.environ.get("GEMINI_TEMPERATURE", "0.3"))

        # ---- Nutrition lookup (USDA FoodData Central) ----
        self.usda_api_key: str = os.environ.get("USDA_API_KEY") or "DEMO_KEY"
        self.usda_base_url: str = os.environ.get("USDA_BASE_URL", "https://api.nal.usda.gov/fdc/v1")
        self.usda_timeout: float = float(os.environ.get("USDA_TIMEOUT", "15"))
        self.usda_page_size: int = int(os.environ.get("USDA_PAGE_SIZE", "10"))
        self.nutrition_cache_ttl: float = float(os.environ.get("NUTRITION_CACHE_TTL_SEC", "86400"))
        self.nutrition_fallback: bool = (os.environ.get("NUTRITION_FALLBACK") or "1").strip() in {
            "1",
            "true",
            "True",
            "yes",
        }

        cors = os.environ.get("DIETBOARD_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
