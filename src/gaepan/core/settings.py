"""Application settings and configuration.

This module defines all configuration options for the Gaepan service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Gaepan", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and operator authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    operator_password: str | None = Field(default=None, alias="OPERATOR_PASSWORD")
    operator_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="OPERATOR_TOKEN_EXPIRE_MINUTES",
    )

    # Database configuration
    database_url: str = Field(default="sqlite:///./gaepan.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    # Bounded wait for any store round trip (connect and statement).
    store_timeout_seconds: float = Field(default=5.0, alias="STORE_TIMEOUT_SECONDS")

    # Redis backs the moderation keyword cache when reachable
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    keyword_cache_ttl_seconds: int = Field(default=60, alias="KEYWORD_CACHE_TTL_SECONDS")
    # How long to stay on the in-process cache after a redis failure.
    keyword_cache_redis_retry_seconds: float = Field(
        default=30.0,
        alias="KEYWORD_CACHE_REDIS_RETRY_SECONDS",
    )

    # Trial lifecycle
    trial_duration_hours: int = Field(default=24, alias="TRIAL_DURATION_HOURS")
    trial_title_max_length: int = Field(default=200, alias="TRIAL_TITLE_MAX_LENGTH")
    trial_body_min_length: int = Field(default=10, alias="TRIAL_BODY_MIN_LENGTH")
    trial_body_max_length: int = Field(default=10_000, alias="TRIAL_BODY_MAX_LENGTH")

    # Moderation
    mask_token: str = Field(default="***", alias="MASK_TOKEN")
    comment_max_length: int = Field(default=2000, alias="COMMENT_MAX_LENGTH")
    comment_password_max_length: int = Field(default=20, alias="COMMENT_PASSWORD_MAX_LENGTH")
    report_list_limit: int = Field(default=100, alias="REPORT_LIST_LIMIT")

    # Engagement
    notification_list_limit: int = Field(default=80, alias="NOTIFICATION_LIST_LIMIT")
    bulk_count_max_ids: int = Field(default=200, alias="BULK_COUNT_MAX_IDS")

    # Petitions
    petition_highlight_threshold: int = Field(default=50, alias="PETITION_HIGHLIGHT_THRESHOLD")
    petition_response_threshold: int = Field(default=50, alias="PETITION_RESPONSE_THRESHOLD")
    petition_comment_max_length: int = Field(default=2000, alias="PETITION_COMMENT_MAX_LENGTH")

    # Precedent search memoization
    precedent_cache_ttl_days: int = Field(default=7, alias="PRECEDENT_CACHE_TTL_DAYS")
    precedent_query_key_max_length: int = Field(
        default=200,
        alias="PRECEDENT_QUERY_KEY_MAX_LENGTH",
    )
    preferred_keywords_limit: int = Field(default=10, alias="PREFERRED_KEYWORDS_LIMIT")
    keyword_log_max_rows: int = Field(default=500, alias="KEYWORD_LOG_MAX_ROWS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
