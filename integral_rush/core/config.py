from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./integral_rush.db",
        alias="DATABASE_URL",
    )
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    celery_broker_url: str = Field(default="redis://localhost:6379/1", alias="CELERY_BROKER_URL")
    celery_result_backend: str = Field(
        default="redis://localhost:6379/2",
        alias="CELERY_RESULT_BACKEND",
    )

    room_code_max_attempts: int = Field(default=10, alias="ROOM_CODE_MAX_ATTEMPTS")
    matchmaking_queue_ttl_seconds: int = Field(default=300, alias="MATCHMAKING_QUEUE_TTL_SECONDS")
    matchmaking_pair_max_attempts: int = Field(default=3, alias="MATCHMAKING_PAIR_MAX_ATTEMPTS")
    matchmaking_purge_interval_seconds: int = Field(
        default=60,
        alias="MATCHMAKING_PURGE_INTERVAL_SECONDS",
    )
    tournament_sweep_interval_seconds: int = Field(
        default=30,
        alias="TOURNAMENT_SWEEP_INTERVAL_SECONDS",
    )
    tournament_sweep_batch_size: int = Field(default=50, alias="TOURNAMENT_SWEEP_BATCH_SIZE")

    answer_judge_url: str | None = Field(default=None, alias="ANSWER_JUDGE_URL")
    answer_judge_timeout_seconds: float = Field(
        default=10.0,
        alias="ANSWER_JUDGE_TIMEOUT_SECONDS",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
