from pydantic_settings import BaseSettings
from typing import List, Optional, Union
from pydantic import field_validator
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Job Board API"

    # "development" | "test" | "production"
    ENVIRONMENT: str = "development"

    # Database Settings
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "jobboard_db"

    # Full SQLAlchemy URL; takes precedence over the POSTGRES_* parts when set
    DATABASE_URI: Optional[str] = None

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URI:
            return self.DATABASE_URI
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis Settings (shared token revocation store and rate limiter)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # "memory" keeps revoked tokens in-process, "redis" shares them across instances
    REVOCATION_BACKEND: str = "memory"

    # Rate limiting (per client IP, shared by login and register)
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT_MAX_REQUESTS: int = 5
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    # JWT Settings
    ACCESS_TOKEN_SECRET: str = "change-me-access-secret"
    REFRESH_TOKEN_SECRET: str = "change-me-refresh-secret"
    ALGORITHM: str = "HS256"
    TOKEN_AUDIENCE: str = "jobboard-api"
    TOKEN_ISSUER: str = "jobboard-auth"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 15 * 60
    REFRESH_TOKEN_EXPIRE_SECONDS: int = 7 * 24 * 60 * 60

    # Reject access tokens whose token_version is stale (closes the logout-everywhere window)
    ENFORCE_ACCESS_TOKEN_VERSION: bool = False

    # Frontend page that accepts ?token=... to complete a password reset
    PASSWORD_RESET_URL: str = "http://localhost:3000/reset-password"

    # Session Settings
    INACTIVITY_TIMEOUT_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12

    # Cookie Settings
    COOKIE_DOMAIN: Optional[str] = None
    REFRESH_COOKIE_NAME: str = "refreshToken"
    SESSION_COOKIE_NAME: str = "sessionId"
    CSRF_COOKIE_NAME: str = "XSRF-TOKEN"

    # Logging
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = True

    # CORS Settings - can be set as JSON string in .env
    BACKEND_CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000", "http://localhost:8000"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Union[List[str], str]) -> List[str]:
        """Parse CORS origins from JSON string or list"""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not valid JSON, split by comma
                return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
