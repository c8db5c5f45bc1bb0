# config/settings.py

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, validator
import os
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Passgate"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")

    # CORS
    CORS_ORIGINS: str = ""

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        if not self.CORS_ORIGINS:
            return ["*"] if self.DEBUG else []
        return [s.strip() for s in self.CORS_ORIGINS.split(",") if s.strip()]

    # Database
    DATABASE_URL: str = "sqlite:///./passgate.db"
    DB_POOL_SIZE: int = Field(default=20, ge=5, le=100)
    DB_MAX_OVERFLOW: int = Field(default=30, ge=5, le=100)
    DB_POOL_RECYCLE: int = Field(default=3600, ge=300)

    # QR payloads
    QR_ENCRYPTION_KEY: str = "c82a64c06c982ee1d50863aca97856cc"

    # Duplicate cache
    DUPLICATE_CACHE_BACKEND: str = Field(default="memory", pattern="^(memory|redis)$")
    REDIS_URL: Optional[str] = None
    DUPLICATE_CACHE_KEY: str = "passgate:checked_in"

    # Scanning
    DEFAULT_SCANNER_ID: str = "device-id-placeholder"
    ATTENDANCE_TIMEZONE: str = "UTC"

    # Monitoring
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Server
    PORT: Optional[int] = Field(default=8000, ge=1, le=65535)

    @validator('QR_ENCRYPTION_KEY')
    def validate_qr_key(cls, v):
        """AES-256 needs exactly 32 bytes of key material"""
        if len(v.encode("utf-8")) != 32:
            raise ValueError(
                f"QR_ENCRYPTION_KEY must be exactly 32 characters (256 bits). "
                f"Current length: {len(v)}"
            )
        return v

    @validator('DATABASE_URL')
    def validate_database_url(cls, v):
        """Validate database URL format"""
        if not v.startswith(('postgresql://', 'postgresql+psycopg2://', 'sqlite://')):
            raise ValueError('Unsupported database URL format')
        return v

    @validator('REDIS_URL')
    def validate_redis_url(cls, v):
        """Validate Redis URL format"""
        if v and not v.startswith(('redis://', 'rediss://')):
            raise ValueError('Invalid Redis URL format')
        return v

    @validator('CORS_ORIGINS')
    def validate_cors_origins(cls, v):
        """Validate CORS origins in production"""
        # In production, don't allow wildcard CORS
        environment = os.getenv('ENVIRONMENT', 'development')
        if environment == 'production' and '*' in v:
            raise ValueError('Wildcard CORS origins not allowed in production')
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.ENVIRONMENT == "development"

    @property
    def qr_key_bytes(self) -> bytes:
        return self.QR_ENCRYPTION_KEY.encode("utf-8")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
