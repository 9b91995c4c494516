"""
Travel Manager – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = str(PACKAGE_DIR / "templates")


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──
    APP_NAME: str = "Travel Manager"
    DEBUG: bool = False
    LOCALE: str = "en"
    RECOMMENDATIONS_LIMIT: int = 10

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./travel_manager.db"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # ── Static files (activity images, avatars) ──
    STATIC_DIR: str = "./static"

    # ── Sessions ──
    SESSION_COOKIE: str = "session"
    COOKIE_SECURE: bool = True
    BCRYPT_ROUNDS: int = 10


settings = Settings()
