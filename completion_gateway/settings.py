from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read from OS env and optional .env file in project root.
    _project_root = Path(__file__).parent.parent

    model_config = SettingsConfigDict(
        env_file=str(_project_root / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Environment / mode
    environment: str = Field(
        "development",
        alias="APP_ENV",
        description="Runtime environment, e.g. development / production",
    )
    api_docs_override: bool | None = Field(
        default=None,
        alias="ENABLE_API_DOCS",
        description=(
            "Force FastAPI docs routes (/docs, /redoc, /openapi.json) on or off; "
            "defaults to off when APP_ENV=production"
        ),
    )

    # CORS
    cors_allow_origins: str = Field(
        "http://localhost:3000",
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of allowed CORS origins",
    )

    # Upstream inference provider (Cloudflare Workers AI, OpenAI-compatible API)
    cloudflare_account_id: str = Field(
        "",
        alias="CLOUDFLARE_ACCOUNT_ID",
        description="Cloudflare account id used to build the Workers AI base URL",
    )
    cloudflare_api_token: str = Field(
        "",
        alias="CLOUDFLARE_API_TOKEN",
        description="Bearer token sent to the upstream provider",
    )
    upstream_base_url_override: str | None = Field(
        default=None,
        alias="UPSTREAM_BASE_URL",
        description="Explicit OpenAI-compatible base URL; overrides the Cloudflare-derived one",
    )
    upstream_timeout: float = Field(
        60.0,
        alias="UPSTREAM_TIMEOUT",
        description="HTTP timeout in seconds for a single upstream completion call",
        gt=0,
    )

    # Conversation sessions
    session_timeout_seconds: int = Field(
        30 * 60,
        alias="SESSION_TIMEOUT_SECONDS",
        description="Idle time after which a conversation session is considered expired",
        ge=1,
    )
    max_history_length: int = Field(
        20,
        alias="MAX_HISTORY_LENGTH",
        description="Maximum number of messages kept per conversation (system messages are never evicted)",
        ge=1,
    )
    session_reap_interval_seconds: int = Field(
        0,
        alias="SESSION_REAP_INTERVAL_SECONDS",
        description="Interval of the background expired-session sweep; 0 disables it (the health endpoint still sweeps)",
        ge=0,
    )

    # Model fallback
    model_failure_threshold: int = Field(
        3,
        alias="MODEL_FAILURE_THRESHOLD",
        description="Consecutive rate-limit failures after which a model is skipped",
        ge=1,
    )

    # Completion defaults
    default_temperature: float = Field(
        0.7,
        alias="DEFAULT_TEMPERATURE",
        description="Sampling temperature used when the request does not set one",
        ge=0.0,
        le=2.0,
    )
    default_max_tokens: int = Field(
        500,
        alias="DEFAULT_MAX_TOKENS",
        description="max_tokens for conversational completions when the request does not set one",
        ge=1,
    )
    single_default_max_tokens: int = Field(
        150,
        alias="SINGLE_DEFAULT_MAX_TOKENS",
        description="max_tokens for stateless single completions when the request does not set one",
        ge=1,
    )

    # Application log level for our completion_gateway logger.
    # Can be overridden via LOG_LEVEL env var, e.g. "DEBUG" while debugging.
    log_level: str = Field(
        "INFO",
        alias="LOG_LEVEL",
        description="Application log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_dir: str = Field(
        "logs",
        alias="LOG_DIR",
        description="Log directory; relative paths are resolved against the project root",
    )
    log_backup_days: int = Field(
        7,
        alias="LOG_BACKUP_DAYS",
        description="Keep the most recent N daily log folders; 0 disables cleanup",
        ge=0,
    )
    log_split_by_business: bool = Field(
        True,
        alias="LOG_SPLIT_BY_BUSINESS",
        description="Split application logs into per-area files inferred from the caller path",
    )

    @property
    def upstream_base_url(self) -> str:
        """
        OpenAI-compatible base URL; `/chat/completions` is appended per call.
        """
        if self.upstream_base_url_override:
            return self.upstream_base_url_override.rstrip("/")
        return (
            "https://api.cloudflare.com/client/v4/accounts/"
            f"{self.cloudflare_account_id}/ai/v1"
        )

    @property
    def enable_api_docs(self) -> bool:
        """
        Docs routes are on outside production unless ENABLE_API_DOCS says otherwise.
        """
        if self.api_docs_override is not None:
            return self.api_docs_override
        return self.environment.lower() != "production"


settings = Settings()  # Reads from environment if available
