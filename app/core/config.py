from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "vt_user"
    postgres_password: str = "changeme"
    postgres_db: str = "visibility_tracker"

    @property
    def postgres_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def postgres_url_sync(self) -> str:
        """For Alembic migrations (sync driver)."""
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis (Celery broker + result backend)
    redis_url: str = "redis://localhost:6379/0"

    # Auth: tokens are issued by the external auth service, we only verify them
    jwt_secret_key: str = "change-this-to-a-random-string"
    jwt_algorithm: str = "HS256"

    # AI gateway (OpenRouter-compatible chat completions)
    openrouter_api_key: str = ""
    openrouter_api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    site_url: str = "http://localhost:3000"
    app_name: str = "AI Visibility Tracker"

    # Backend → downstream model
    chatgpt_model: str = "openai/gpt-4o-mini"
    perplexity_model: str = "perplexity/sonar"

    ai_temperature: float = 0.3
    ai_max_tokens: int = 1000
    ai_timeout_seconds: float = 30.0
    ai_max_attempts: int = 3
    ai_backoff_seconds: list[float] = [1.0, 2.0, 4.0]

    # Tracking pipeline
    tracking_pacing_seconds: float = 0.5  # after every AI query
    tracking_interval_days: int = 7  # next_check_date after a run
    first_check_delay_hours: int = 24  # next_check_date after setup
    trial_length_days: int = 14

    # Manual runs: N per rolling window
    manual_runs_per_window: int = 2
    manual_run_window_hours: int = 24

    # Scheduled cadence guard
    trial_check_interval_hours: int = 24
    paid_check_interval_hours: int = 168

    # Cron trigger
    cron_secret: str = ""
    cron_enabled: bool = False

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated, e.g. "https://app.example.com,https://admin.example.com"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if settings.jwt_secret_key in ("change-this-to-a-random-string", ""):
        errors.append("JWT_SECRET_KEY must be set to the auth service signing secret")

    if not settings.openrouter_api_key:
        errors.append("OPENROUTER_API_KEY must be set")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")
        if settings.cron_enabled and not settings.cron_secret:
            errors.append("CRON_SECRET must be set when CRON_ENABLED is true")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
