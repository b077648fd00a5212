"""Shared helpers for proxy tests."""

from bridge.app.core.config import Settings

BACKEND_URL = "https://backend.example.com"
ANON_KEY = "anon-public-key"
ALLOWED_ORIGINS = "https://app.example.com,http://localhost:3000"


def make_settings(**overrides) -> Settings:
    """Settings isolated from any .env file, with the sweeper disabled."""
    values = {
        "backend_base_url": BACKEND_URL,
        "backend_anon_key": ANON_KEY,
        "backend_service_key": "service-secret-key",
        "allowed_origins": ALLOWED_ORIGINS,
        "rate_limit_per_min": 100,
        "rate_limit_sweep_interval_seconds": 0,
        "debug": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)
