"""Configuration management for Chatter.

Loads environment variables using pydantic-settings for type-safe configuration.
All service URLs, credentials, queue names, and tuning parameters are defined here.
"""

import os
from functools import lru_cache
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_LOADED = False
_ENV_LOCK = Lock()

# Fixed by the data model: every Application token is exactly 36 characters.
APPLICATION_TOKEN_LENGTH = 36


def _resolve_env_file() -> str | None:
    """Locate the .env file regardless of the current working directory.

    Preference order:
        1. CHATTER_ENV_FILE environment variable (explicit override)
        2. Current working directory (common for local runs)
        3. Ancestors of this file (covers package execution within Docker)
    """
    override = os.getenv("CHATTER_ENV_FILE")
    if override:
        override_path = Path(override).expanduser()
        if override_path.is_file():
            return str(override_path)

    cwd_candidate = Path.cwd() / ".env"
    if cwd_candidate.is_file():
        return str(cwd_candidate)

    for parent in Path(__file__).resolve().parents:
        candidate = parent / ".env"
        if candidate.is_file():
            return str(candidate)

    return None


_DEFAULT_ENV_FILE = _resolve_env_file()


def ensure_env_loaded() -> None:
    """Load environment variables from disk exactly once."""
    global _ENV_LOADED

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        env_path = _DEFAULT_ENV_FILE or _resolve_env_file()
        if env_path:
            load_dotenv(env_path, override=False)

        _ENV_LOADED = True


ensure_env_loaded()


class ChatterConfig(BaseSettings):
    """Main configuration class for Chatter.

    Loads service URLs, credentials, queue names and pipeline tuning from
    environment variables. Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file=_DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========== Counter Store (Redis) ==========
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: int = 10

    # ========== Durable Store (PostgreSQL) ==========
    postgres_user: str = "chatter"
    postgres_password: SecretStr = SecretStr("changeme")
    postgres_db: str = "chatter"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_min_pool_size: int = 1
    postgres_max_pool_size: int = 10

    # ========== Job Queues ==========
    chats_queue: str = "chats_creation_queue"
    messages_queue: str = "messages_creation_queue"
    job_max_retries: int = Field(default=5, ge=0, le=25)
    job_retry_base_delay_seconds: int = Field(default=2, ge=1)
    worker_poll_timeout: int = Field(default=5, ge=1)

    # Treat a redelivered event whose row already exists with the same payload
    # as a successful no-op instead of a uniqueness failure.
    idempotent_redelivery: bool = False

    # ========== Reconciliation ==========
    reconcile_batch_size: int = Field(default=1000, ge=1)

    # ========== Token Issuance ==========
    token_max_attempts: int = Field(default=10, ge=1)

    # ========== Observability ==========
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {value}")
        return level

    @property
    def worker_queues(self) -> list[str]:
        """Queue names consumed by the job worker, in priority order."""
        return [self.chats_queue, self.messages_queue]

    @property
    def postgres_connection_string(self) -> str:
        """Get PostgreSQL connection string."""
        pwd = self.postgres_password.get_secret_value()
        return f"postgresql://{self.postgres_user}:{pwd}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"


@lru_cache(maxsize=1)
def get_config() -> ChatterConfig:
    """Return cached Settings instance (thread-safe, process-local).

    Returns:
        ChatterConfig: The configuration instance loaded from environment variables.
    """
    return ChatterConfig()


# Export convenience accessors
__all__ = ["APPLICATION_TOKEN_LENGTH", "ChatterConfig", "ensure_env_loaded", "get_config"]
