# app/core/config.py - Taskboard API configuration
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr
from typing import List, Optional


class Settings(BaseSettings):
    """Read from the environment, falling back to .env"""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database: postgresql+asyncpg://... in deployments, sqlite+aiosqlite://... locally
    DATABASE_URL: str
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 0

    # Identity
    JWT_SECRET_KEY: SecretStr
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    ADMIN_INVITE_TOKEN: Optional[SecretStr] = Field(None, description="Registering with this token grants the admin role")

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    ENABLE_JSON_LOGGING: bool = True

    # OpenTelemetry; local trace ids are used when disabled
    ENABLE_OTEL_EXPORTER: bool = False
    ENABLE_OTEL_CONSOLE_EXPORT: bool = False
    ENABLE_EXTERNAL_TRACING: bool = False
    OTLP_ENDPOINT: str = "http://localhost:4317"

    CORS_ORIGINS: str = Field(
        "http://localhost:5173,http://127.0.0.1:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    RATE_LIMIT_ENABLED: bool = True
    DEFAULT_RATE_LIMIT: str = "100/minute"
    LOGIN_RATE_LIMIT: str = Field("5/minute", description="Applies to register and both login routes")

    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = Field(5 * 1024 * 1024, description="Bytes")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def should_use_json_logging(self) -> bool:
        return self.ENVIRONMENT == "production" or self.ENABLE_JSON_LOGGING

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
