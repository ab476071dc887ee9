"""Configuration and settings"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Database
    database_url: str = Field(default="mongodb://localhost:27017")
    database_name: str = Field(default="local_explorer")

    # Auth
    secret_key: str = Field(default="supersecretkey")
    access_token_expire_days: int = Field(default=30)

    # Frontend origin allowed by CORS
    frontend_url: str = Field(default="*")

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    # Bookings
    restaurant_booking_minutes: int = Field(default=120)

    api_title: str = "Local Explorer API"
    api_version: str = "0.1.0"


# Global settings instance
settings = Settings()
