from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "brandpulse"
    postgres_password: str = "changeme"
    postgres_db: str = "brandpulse"

    @property
    def postgres_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis (cache + Celery broker)
    redis_url: str = "redis://localhost:6379/0"

    # OpenAI-compatible chat completion endpoint
    openai_api_key: str = ""
    openai_api_url: str = "https://api.openai.com/v1/chat/completions"
    generation_model: str = "gpt-4o"
    analysis_model: str = "gpt-4o-mini"

    # Analysis runs
    analysis_concurrency: int = 15
    analysis_max_retries: int = 3
    analysis_retry_base_delay: float = 2.0  # seconds
    provider_timeout: float = 60.0  # seconds, per provider call
    analysis_task_time_limit: int = 3600  # seconds, hard limit for a queued run
    batch_mode: str = "window"  # window | pool
    default_country_code: str = "ES"
    default_industry: str = "seguros"

    # Response cache
    cache_enabled: bool = True
    cache_backend: str = "redis"  # redis | memory
    cache_ttl_days: int = 7

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if settings.batch_mode not in ("window", "pool"):
        errors.append("BATCH_MODE must be 'window' or 'pool'")

    if settings.cache_backend not in ("redis", "memory"):
        errors.append("CACHE_BACKEND must be 'redis' or 'memory'")

    if settings.analysis_concurrency < 1:
        errors.append("ANALYSIS_CONCURRENCY must be at least 1")

    if settings.analysis_task_time_limit < 120:
        errors.append("ANALYSIS_TASK_TIME_LIMIT must be at least 120 seconds")

    if settings.app_env == "production":
        if not settings.openai_api_key:
            errors.append("OPENAI_API_KEY must be set in production")
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
