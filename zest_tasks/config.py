"""
Configuration management for Zest Tasks
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Zest Tasks API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./zest_tasks.db"

    # Security
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours

    # Chat completion API
    ANTHROPIC_API_KEY: str = ""
    CHAT_MODEL: str = "claude-haiku-4-5"
    CHAT_MAX_TOKENS: int = 1000
    CHAT_TEMPERATURE: float = 0.2
    CHAT_TOP_P: Optional[float] = None  # some models reject top_p alongside temperature

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:8080",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
    ]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
