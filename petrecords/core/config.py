from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    API_BASE_URL: str
    REQUEST_TIMEOUT: float = 10.0
    REDIS_URL: str = "redis://localhost:6379"
    TOKEN_KEY: str = "jwt_token"
    USER_KEY: str = "user"
    PETS_KEY: str = "user_pets"
    HEALTH_RECORDS_KEY: str = "health_records"
    LOG_LEVEL: str = "info"
    ENVIRONMENT: str = "production"

    @field_validator("API_BASE_URL")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        value = v.rstrip("/")
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError("API_BASE_URL must start with http:// or https://")
        return value

    @field_validator("REQUEST_TIMEOUT")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
