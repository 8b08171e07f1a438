from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from dotenv import load_dotenv
import logging
import sys

load_dotenv()
logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    # Connections
    MONGO_URI: str = Field(default="mongodb://localhost:27017/storefront", description="MongoDB connection URI")
    REDIS_URL: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)

    # Cache
    CACHE_ENABLED: bool = Field(default=True)
    CACHE_SOCKET_TIMEOUT_SECONDS: float = Field(default=2.0, gt=0)
    CACHE_CONNECT_TIMEOUT_SECONDS: float = Field(default=2.0, gt=0)
    CACHE_PING_TIMEOUT_SECONDS: float = Field(default=1.0, gt=0)
    CACHE_SCAN_COUNT: int = Field(default=500, ge=10, le=10000)
    CACHE_MONITOR_KEY_SAMPLE: int = Field(default=50, ge=1, le=1000)
    CACHE_WARM_INTERVAL_MINUTES: int = Field(default=30, ge=1, le=1440)

    # Database
    QUERY_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)

    @field_validator('MONGO_URI')
    @classmethod
    def validate_mongo_uri(cls, v):
        if not v.startswith(('mongodb://', 'mongodb+srv://')):
            raise ValueError('MONGO_URI must be a valid MongoDB connection string')
        return v

    @field_validator('REDIS_URL')
    @classmethod
    def validate_redis_url(cls, v):
        if not v.startswith(('redis://', 'rediss://', 'unix://')):
            raise ValueError('REDIS_URL must be a valid Redis connection string')
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

try:
    settings = Settings()
    logger.info("Configuration loaded successfully")
except Exception as e:
    logger.critical(f"Failed to load configuration: {str(e)}")
    sys.exit(1)
