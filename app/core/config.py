from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database Connection
    DATABASE_URL: str = "sqlite:///./battiolab.db"

    # Token Authentication
    JWT_SECRET: str = "battiolab-dev-secret-key-change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Reporting
    LOW_STOCK_THRESHOLD: int = 10

    # Frontend origins allowed to call the API
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:3006",
    ]

    # Folder holding the demo CSV files used by the seed endpoint
    SEED_DATA_DIR: Path = Path(__file__).resolve().parent.parent / "data" / "seed"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
