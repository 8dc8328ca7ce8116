"""
Centralized configuration for the study reader.

Provides environment-aware settings shared by main.py and the web API
routes. Environment files are loaded by the entry points (main.py,
conftest.py), not here.
"""

import os

from study_core.reader.errors import InvalidConfigError
from study_core.reader.renderer import (
    DEFAULT_LINES_PER_PAGE,
    DEFAULT_MAX_PAGE_CHARS,
    ReaderConfig,
)


def is_dev_mode() -> bool:
    """Check if running in development mode (--dev flag or DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_frontend_port() -> int:
    """Get frontend dev server port from env or default."""
    return int(os.getenv("FRONTEND_PORT", "3000"))


def get_frontend_url() -> str:
    """Get frontend URL based on mode."""
    if is_dev_mode():
        return os.environ.get(
            "FRONTEND_URL", f"http://localhost:{get_frontend_port()}"
        ).rstrip("/")
    return os.environ.get("FRONTEND_URL", f"http://localhost:{get_api_port()}")


def get_allowed_origins() -> list[str]:
    """
    Get list of allowed CORS origins.

    Includes localhost variants for dev and the configured frontend URL.
    """
    hosts = ["localhost", "127.0.0.1"]
    ports = [get_api_port(), get_frontend_port()]
    origins = [f"http://{host}:{port}" for host in hosts for port in ports]

    frontend_url = get_frontend_url()
    if frontend_url not in origins:
        origins.append(frontend_url)
    return origins


def get_sentry_dsn() -> str | None:
    """Sentry DSN, or None to leave error reporting off."""
    return os.getenv("SENTRY_DSN") or None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidConfigError(f"{name} must be an integer, got {raw!r}") from None


def get_reader_config() -> ReaderConfig:
    """
    Reader settings from the environment.

    READER_MAX_PAGE_CHARS: soft page size for structured content (default 3000)
    READER_LINES_PER_PAGE: page size for plain content (default 40)

    Raises:
        InvalidConfigError: If a value is not a positive integer
    """
    return ReaderConfig(
        max_page_chars=_int_env("READER_MAX_PAGE_CHARS", DEFAULT_MAX_PAGE_CHARS),
        lines_per_page=_int_env("READER_LINES_PER_PAGE", DEFAULT_LINES_PER_PAGE),
    )


# Optional environment variables
# Format: (name, description)
OPTIONAL_ENV_VARS = [
    ("SENTRY_DSN", "Sentry DSN for error reporting"),
    ("FRONTEND_URL", "Frontend origin allowed by CORS"),
]


def check_env_vars() -> tuple[bool, list[str]]:
    """
    Check environment variables.

    Returns:
        (all_ok, warnings): all_ok is False when reader settings are invalid
    """
    warnings = []
    if not is_dev_mode():
        for name, description in OPTIONAL_ENV_VARS:
            if not os.environ.get(name):
                warnings.append(f"  ⚠ {name}: Not set ({description})")

    try:
        get_reader_config()
    except ValueError as e:
        print(f"  ✗ Reader config: {e}")
        return False, warnings

    return True, warnings
