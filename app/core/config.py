from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Gemini API
    gemini_api_key: str = ""
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta/models"

    # Upstream retry policy
    upstream_max_attempts: int = 5
    upstream_base_retry_delay: float = 1.0  # seconds, doubled per retry
    upstream_max_jitter: float = 1.0  # seconds, uniform random added to each delay
    upstream_max_elapsed_seconds: float | None = None  # optional wall-clock cap, off by default
    upstream_timeout_seconds: float = 60.0  # per attempt

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
    """Validate critical settings. Called on startup in non-test environments.

    A missing Gemini key is not fatal here: the endpoint reports it per request.
    """
    errors: list[str] = []

    if settings.upstream_max_attempts < 1:
        errors.append("UPSTREAM_MAX_ATTEMPTS must be at least 1")

    if settings.upstream_base_retry_delay < 0 or settings.upstream_max_jitter < 0:
        errors.append("UPSTREAM_BASE_RETRY_DELAY and UPSTREAM_MAX_JITTER must not be negative")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
