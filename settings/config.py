import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    """Configuration settings for the application."""
    PROJECT_NAME: str = "YumRun API"
    API_PREFIX: str = "/api"
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "yumrun")
    # multi-document transactions need a replica set
    MONGO_TRANSACTIONS: bool = False

    SECRET_KEY: str = "MySecretKey@123"  # Production: set SECRET_KEY in env
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
