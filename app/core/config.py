from datetime import date

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHORELY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str
    redis_url: str
    jwt_secret: str
    app_env: str = "development"
    log_level: str = "INFO"
    expose_tracebacks: bool = False
    git_sha: str | None = None
    build_id: str | None = None
    queue_name: str = "chorely:jobs"
    cors_allowed_origins: str = "http://localhost:8081"
    cron_secret: str | None = None
    service_role_key: str | None = None
    recurrence_lookahead_days: int = 7
    leaderboard_epoch: date = date(2000, 1, 1)
    default_timezone: str = "UTC"


settings = Settings()
