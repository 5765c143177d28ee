# social_service/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    PROJECT_NAME: str = "Social API"
    PROJECT_VERSION: str = "1.0.0"
    PROJECT_DESCRIPTION: str = "Realtime chat, groups and presence for the social app"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    # in-memory SQLite is for tests only: it funnels every session through one connection
    DATABASE_URL: str = "sqlite+aiosqlite:///./social.db"
    LOG_LEVEL: str = "INFO"
    MESSAGE_MAX_LENGTH: int = 1000
    GROUP_MESSAGE_PAGE_SIZE: int = 50
    NOTIFICATION_PAGE_SIZE: int = 50

    model_config = SettingsConfigDict(env_file=".env", extra="allow")
