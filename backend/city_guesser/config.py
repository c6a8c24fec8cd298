from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./city_guesser.db"

    # Seed data
    CITIES_CSV_PATH: str = "cities.csv"
    SEED_ON_STARTUP: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # Game Configuration
    ROUNDS_PER_GAME: int = 5
    MAX_ROUNDS_PER_GAME: int = 20
    DEFAULT_MIN_POPULATION: int = 100000
    CHOICES_PER_ROUND: int = 5
    HIGHSCORES_LIMIT: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
