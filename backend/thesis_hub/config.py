"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./thesis_hub.db"
    CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Access lifecycle
    EXPIRATION_DAYS: int = 30  # fixed window; per-request duration_days is display only
    EXPIRY_WARNING_DAYS: int = 3
    EXPIRY_WARNING_DEDUPE: bool = False  # True stops re-warning admins every sweep
    SWEEP_INTERVAL_MINUTES: int = 60  # 0 disables the background scheduler

    # IANA tz used when rendering dates inside notification text
    DISPLAY_TIMEZONE: str = "Asia/Manila"

    class Config:
        env_file = ".env"


settings = Settings()
