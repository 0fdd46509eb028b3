# backend/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    # Seven days, matching the lifetime of tokens issued to the web client
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    DATABASE_URL: str = "sqlite:///./stockmaster.db"

    FRONTEND_URL: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Generated delivery notes are written below this directory
    STORAGE_DIR: str = "storage"

    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

settings = Settings()
