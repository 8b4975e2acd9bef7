from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DEBUG: bool = False
    APP_NAME: str = "cadence"
    version: str = "0.1.0"
    APP_DATABASE_DSN: str = "sqlite:////tmp/cadence.db"
    REDIS_URL: str = "redis://localhost:6379"
    LOG_LEVEL: str = "INFO"
    APP_DOMAIN: str = "example.com"

    # Customer portal tokens
    PORTAL_JWT_SECRET: str = "portal-secret-change-me"
    PORTAL_TOKEN_TTL_HOURS: int = 12

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Background jobs
    VALIDATION_CRON_HOUR: int = 7  # daily scheduled validation run
    AUTO_RESUME_ENABLED: bool = True


settings = Settings()
