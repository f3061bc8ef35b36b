"""Configuration settings for the RAG gateway service."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service identification
    service_name: str = "rag-gateway"
    debug: bool = False

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8002

    # RAG provider selection: "mock" serves everything from the local provider
    provider: Literal["mock", "real"] = "mock"

    # Backend endpoints (comma-separated, positional credentials)
    servers: str = ""
    server_credentials: str = ""
    master_url: str = ""
    credentials_strict: bool = False

    # Timeouts (seconds)
    config_timeout: float = 5.0
    request_timeout: float = 30.0

    # Discovery
    discovery_interval: float = 300.0
    discovery_fetch_attempts: int = 3
    discovery_fetch_backoff: float = 1.0
    discovery_collision_policy: Literal["first", "last"] = "last"

    # Retry for prediction streams
    retry_max_attempts: int = 3
    retry_base_delay: float = 1.0

    # Mock provider
    mock_simulate_failures: bool = False

    # Session token -> user id, seeded into the in-memory store
    session_tokens: dict[str, str] = {}

    # CORS configuration
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    model_config = SettingsConfigDict(
        env_prefix="RAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_mock(self) -> bool:
        return self.provider == "mock"

    @property
    def server_urls(self) -> list[str]:
        """Backend URLs parsed from the comma-separated ``servers`` value."""
        return [s.strip() for s in self.servers.split(",") if s.strip()]

    @property
    def credential_list(self) -> list[str]:
        """Positional credentials; empty entries mean "no credentials"."""
        if not self.server_credentials.strip():
            return []
        return [c.strip() for c in self.server_credentials.split(",")]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
