import logging
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_REDIS_CHANNEL_PREFIX

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Settings(BaseSettings):
    """
    Application Settings loaded from environment variables and .env file.
    """
    # --- Core Settings ---
    PROJECT_NAME: str = "A2A HITL Task Server"
    A2A_PREFIX: str = "/api/a2a"

    # --- Storage Settings ---
    # Unset means tasks are kept in memory only.
    DATABASE_URL: Optional[str] = None
    DATABASE_ECHO: bool = False

    # --- Event Settings ---
    REDIS_URL: Optional[str] = None
    REDIS_ENABLE_SSE: bool = False
    REDIS_CHANNEL_PREFIX: str = DEFAULT_REDIS_CHANNEL_PREFIX
    SSE_HEARTBEAT_SECONDS: float = 30.0
    SSE_QUEUE_MAXSIZE: int = 100
    SSE_REPLAY_ON_SUBSCRIBE: bool = False

    # --- CORS Settings ---
    ALLOWED_ORIGINS: List[str] = ["*"]

    # --- Logging Settings ---
    LOG_LEVEL: str = "INFO"

    # --- Pydantic Settings Configuration ---
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore',
    )

    @property
    def redis_events_enabled(self) -> bool:
        return self.REDIS_ENABLE_SSE and bool(self.REDIS_URL)


@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    logger.info(f"Settings loaded for '{settings.PROJECT_NAME}'.")
    return settings


def configure_logging(level: str = "INFO") -> None:
    log_level_int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level_int, format=LOG_FORMAT, force=True)
    logger.info(f"Logging configured with level: {level}")
