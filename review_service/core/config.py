from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite+aiosqlite:///./reviews.db"
    STORAGE_BACKEND: Literal["sql", "mongo"] = "sql"
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DATABASE: str = "reviews"
    REVIEWS_COLLECTION: str = "reviews"
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 5 * 60
    # the original callable required a signed-in user even for global stats
    REQUIRE_AUTH_FOR_GLOBAL_STATS: bool = False
    CORS_ALLOW_ORIGIN_REGEX: str = ".*"
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env", validate_assignment=True, extra="allow"
    )

def get_settings():
    return Settings()
