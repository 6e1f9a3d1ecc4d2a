from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache

class Settings(BaseSettings):
    # Runtime environment: development, test, staging or production
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # MongoDB Settings
    MONGODB_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "openchat"

    # JWT / JWKS Settings
    AUTH_ISSUER: Optional[str] = None
    CONVEX_SITE_URL: Optional[str] = None
    PUBLIC_BACKEND_URL: Optional[str] = None
    JWKS: Optional[str] = None
    AUTH_STRICT: bool = False
    AUTH_AUDIENCE: str = "convex"
    AUTH_ALTERNATE_PORT: Optional[int] = None
    DEV_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    ENABLE_DEV_AUTH: bool = False

    # CORS Settings (override the per-environment defaults when set)
    CORS_ORIGINS: Optional[str] = None
    CORS_METHODS: Optional[str] = None
    CORS_CREDENTIALS: Optional[str] = None
    CORS_MAX_AGE: Optional[int] = None

    # Stream storage
    REDIS_URL: Optional[str] = None
    STREAM_TTL_SECONDS: int = 30 * 60

    @property
    def CORS_ORIGINS_LIST(self) -> Optional[list[str]]:
        if self.CORS_ORIGINS is None:
            return None
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def CORS_METHODS_LIST(self) -> Optional[list[str]]:
        if self.CORS_METHODS is None:
            return None
        return [method.strip().upper() for method in self.CORS_METHODS.split(",")]

    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def STRICT_AUTH(self) -> bool:
        """Production always refuses development auth fallbacks"""
        return self.IS_PRODUCTION or self.AUTH_STRICT

    @property
    def DEV_AUTH_ENABLED(self) -> bool:
        return self.ENVIRONMENT == "development" and self.ENABLE_DEV_AUTH and not self.STRICT_AUTH

    class Config:
        env_file = ".env"
        case_sensitive = True

@lru_cache()
def get_settings():
    return Settings()

settings = get_settings()
