"""
Application configuration
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""
    
    # Application
    APP_NAME: str = "Push Code Relay"
    DEV_MODE: bool = False
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"
    
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    
    # Database
    DATABASE_URL: str = "sqlite:///./pushrelay.db"
    
    # Device records
    DEVICE_TTL_HOURS: int = 24
    REFRESH_EXPIRY_ON_UPDATE: bool = False
    
    # Expiry sweep
    EXPIRY_SWEEP_ENABLED: bool = True
    EXPIRY_SWEEP_INTERVAL_MINUTES: int = 10
    
    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]
    
    # Firebase: either a service account file or the inline credential triple
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CLIENT_EMAIL: Optional[str] = None
    FIREBASE_PRIVATE_KEY: Optional[str] = None
    
    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
