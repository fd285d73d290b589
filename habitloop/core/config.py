import os
from typing import Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    APP_NAME: str = "Habitloop"

    # Calendar
    # Every day key is computed in this zone. Use the user's local zone.
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")
    CONTRIBUTION_WEEKS: int = int(os.getenv("CONTRIBUTION_WEEKS", "52"))

    # Storage
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "memory") # 'memory' or 'mongo'
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "habitloop")

    # Frontend
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None

    # Pydantic Settings Config
    model_config = {"env_file": ".env", "extra": "ignore"}

settings = Settings()
