from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from bridge.app.services.cors_policy import parse_allowed_origins


class Settings(BaseSettings):
    """Proxy settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - includes exception type in unexpected error responses
    debug: bool = False

    # Server bind address for `python -m bridge`
    host: str = "0.0.0.0"
    port: int = 8000

    # Backend data API
    backend_base_url: str = ""
    backend_anon_key: str = ""
    # Accepted for deployment parity; never used when forwarding requests
    backend_service_key: str = ""

    # Path handling
    proxy_strip_prefix: str = "/proxy"
    health_path: str = "/health"

    # Trusted edge header carrying the originating client address
    client_ip_header: str = "CF-Connecting-IP"

    # Rate limiting settings
    rate_limit_per_min: int = 100  # <= 0 rejects every proxied request
    rate_limit_window_seconds: float = 60.0
    rate_limit_max_entries: int = 100_000
    rate_limit_sweep_interval_seconds: float = 60.0  # <= 0 disables the sweeper

    # HTTP client connection pool settings
    httpx_connect_timeout: float = 10.0  # Time to establish connection
    httpx_read_timeout: float = 30.0  # Time to read response data
    httpx_write_timeout: float = 10.0  # Time to send request data
    httpx_pool_timeout: float = 5.0  # Time to acquire connection from pool
    httpx_keepalive_expiry: float = 30.0
    httpx_max_connections: int = 100
    httpx_max_keepalive_connections: int = 20

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # CORS settings
    # NoDecode keeps pydantic-settings from JSON-decoding the comma list.
    allowed_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def decode_allowed_origins(cls, v: Any) -> list[str]:
        return parse_allowed_origins(v)

    @field_validator("backend_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Trim whitespace and trailing slashes so paths concatenate cleanly."""
        return v.strip().rstrip("/")

    @field_validator("rate_limit_window_seconds")
    @classmethod
    def validate_window_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("rate_limit_window_seconds must be positive")
        return v

    @field_validator("rate_limit_max_entries", "httpx_max_connections")
    @classmethod
    def validate_capacity_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("capacity values must be at least 1")
        return v

    @field_validator(
        "httpx_connect_timeout",
        "httpx_read_timeout",
        "httpx_write_timeout",
        "httpx_pool_timeout",
    )
    @classmethod
    def validate_timeout_positive(cls, v: float) -> float:
        """Validate timeout values are positive."""
        if v <= 0:
            raise ValueError("Timeout values must be positive")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
