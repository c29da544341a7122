from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic_settings import BaseSettings

from app.services.file_encoder import ACCEPTED_FILE_TYPES, MAX_FILE_SIZE


def _load_yaml_config() -> dict:
    root = Path(__file__).resolve().parents[2]  # project root
    cfg_path = root / "config.yaml"
    if not cfg_path.exists():
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    # LLM
    llm_provider: str = "gemini"
    llm_model: str = "gemini-2.5-flash"
    llm_temperature: float = 0.4
    llm_max_tokens: int = 900

    GEMINI_API_KEY: Optional[str] = None

    # Upload gate
    max_file_size: int = MAX_FILE_SIZE
    accepted_types: list[str] = list(ACCEPTED_FILE_TYPES)

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    def __init__(self, **kwargs):
        cfg = _load_yaml_config()
        llm = (cfg.get("llm") or {})
        upload = (cfg.get("upload") or {})
        logging_cfg = (cfg.get("logging") or {})

        defaults = dict(
            llm_provider=llm.get("provider", "gemini"),
            llm_model=llm.get("model", "gemini-2.5-flash"),
            llm_temperature=llm.get("temperature", 0.4),
            llm_max_tokens=llm.get("max_tokens", 900),
            max_file_size=upload.get("max_file_size", MAX_FILE_SIZE),
            accepted_types=upload.get("accepted_types", list(ACCEPTED_FILE_TYPES)),
            log_level=logging_cfg.get("level", "INFO"),
        )
        defaults.update(kwargs)
        super().__init__(**defaults)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
