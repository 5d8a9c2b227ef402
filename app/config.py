import logging
import sys
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.schemas.game_engine import GameMode

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App config
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    DEBUG: bool = False

    # Game config
    DEFAULT_GAME_MODE: GameMode = GameMode.OPPONENT

    # Automated opponent
    OPPONENT_STRATEGY: str = "random"
    OPPONENT_MOVE_DELAY: float = 0.5
    MOVE_SUPPLIER_URL: str | None = None
    MOVE_SUPPLIER_TIMEOUT: float = 30.0
    RANDOM_SEED: int | None = None

    # WebSocket config
    WS_MAX_MESSAGE_SIZE: int = 64 * 1024

    @field_validator("OPPONENT_STRATEGY")
    @classmethod
    def validate_strategy(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("OPPONENT_STRATEGY cannot be empty")
        return v

    @field_validator("OPPONENT_MOVE_DELAY")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("OPPONENT_MOVE_DELAY cannot be negative")
        return v

    @field_validator("MOVE_SUPPLIER_URL")
    @classmethod
    def validate_supplier_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("MOVE_SUPPLIER_URL must be an HTTP(S) URL")
        return v

    @field_validator("MOVE_SUPPLIER_TIMEOUT")
    @classmethod
    def validate_supplier_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("MOVE_SUPPLIER_TIMEOUT must be positive")
        return v


def configure_logging(debug: bool = False) -> None:
    """Configure logging for the application."""
    log_level = logging.DEBUG if debug else logging.INFO
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    configure_logging(settings.DEBUG)
    logger.info("Settings loaded successfully")
    logger.debug("Default game mode: %s", settings.DEFAULT_GAME_MODE.value)
    logger.debug("Opponent strategy: %s", settings.OPPONENT_STRATEGY)
    logger.debug("Move supplier URL: %s", settings.MOVE_SUPPLIER_URL)
    return settings
