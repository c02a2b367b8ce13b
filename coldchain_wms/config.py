"""
Configuration management for the Cold-Chain WMS mock backend
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Cold-Chain WMS API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database (private in-memory store by default)
    DATABASE_URL: str = "sqlite:///:memory:"

    # Security
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8  # 8 hours

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Seed data and synthetic feeds
    RANDOM_SEED: int = 20251102
    SITE_TIMEZONE: str = "Asia/Ho_Chi_Minh"  # local clock for the solar daylight window

    # Sensor simulator
    SIMULATOR_ENABLED: bool = True
    SIMULATOR_INTERVAL_SECONDS: float = 5.0
    SIMULATOR_EXCURSION_PROBABILITY: float = 0.05
    SIMULATOR_EXCURSION_DELTA: float = 5.0
    SIMULATOR_JITTER: float = 1.0

    # Request handling
    RESPONSE_DELAY_MS: int = 0  # artificial network latency, 0 disables
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
