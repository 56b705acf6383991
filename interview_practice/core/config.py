import logging
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Interview Practice Backend"
    api_prefix: str = "/api"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    question_generation_timeout_seconds: float = 15.0

    tick_interval_seconds: float = 1.0
    active_session_ttl_seconds: int = 7200

    database_url: str = "sqlite:///./interview_practice.db"

    @property
    def is_production(self) -> bool:
        return not self.database_url.startswith("sqlite")


settings = Settings()

logger.info(
    "Configuration loaded: openai_configured=%s database=%s",
    bool(settings.openai_api_key),
    "Postgres" if settings.is_production else "SQLite",
)
