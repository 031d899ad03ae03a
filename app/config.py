from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str | None = None
    JWT_ISSUER: str | None = None
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7
    APP_NAME: str = "StudyBuddy API"
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # Matching settings
    MATCH_MIN_COMPATIBILITY: int = 50  # exclusive lower bound for discovery
    DISCOVERY_CANDIDATE_MULTIPLIER: int = 2
    DISCOVERY_DEFAULT_LIMIT: int = 20

    # Per-user rate limits (requests per window)
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    MATCHES_RATE_LIMIT: int = 100
    USERS_RATE_LIMIT: int = 150

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
