"""Runtime settings with typed configuration and fail-fast validation.

Settings are read from ``FETCHKIT_*`` environment variables through
``pydantic-settings``. Validation failures surface as
:class:`~fetchkit.errors.SettingsError`.

Examples
--------
>>> from fetchkit.settings import load_settings
>>> settings = load_settings(retry={"attempts": 5})
>>> settings.retry.attempts
5
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fetchkit.errors import SettingsError
from fetchkit.logging import get_logger

__all__ = [
    "FetchSettings",
    "HttpConfig",
    "ObservabilityConfig",
    "RetryConfig",
    "get_settings",
    "load_settings",
]

logger = get_logger(__name__)


class HttpConfig(BaseSettings):
    """Transport defaults (``FETCHKIT_HTTP_*``)."""

    model_config = SettingsConfigDict(env_prefix="FETCHKIT_HTTP_", extra="forbid")

    timeout_s: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    follow_redirects: bool = Field(default=True, description="Follow 3xx redirects")


class RetryConfig(BaseSettings):
    """Retry defaults (``FETCHKIT_RETRY_*``)."""

    model_config = SettingsConfigDict(env_prefix="FETCHKIT_RETRY_", extra="forbid")

    attempts: int = Field(default=3, ge=1, description="Total attempts, first try included")
    initial_delay_ms: float = Field(default=200.0, ge=0, description="Backoff base delay")
    backoff_base: float = Field(default=2.0, ge=1, description="Exponential growth factor")
    jitter: float = Field(default=0.15, ge=0, le=1, description="Jitter fraction around delay")
    max_delay_ms: float | None = Field(default=None, ge=0, description="Upper bound on delay")


class ObservabilityConfig(BaseSettings):
    """Logging toggles (``FETCHKIT_*`` namespace)."""

    model_config = SettingsConfigDict(env_prefix="FETCHKIT_", extra="forbid")

    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, ...)")


class FetchSettings(BaseSettings):
    """Aggregate configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FETCHKIT_",
        env_nested_delimiter="__",
        extra="forbid",
        case_sensitive=False,
    )

    http: HttpConfig = Field(default_factory=HttpConfig, description="Transport defaults")
    retry: RetryConfig = Field(default_factory=RetryConfig, description="Retry defaults")
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig, description="Logging configuration"
    )

    def __init__(self, **overrides: object) -> None:
        """Initialise settings, converting validation errors to ``SettingsError``."""
        try:
            super().__init__(**overrides)  # type: ignore[arg-type]
        except Exception as exc:
            msg = f"Configuration validation failed: {exc}"
            logger.exception(
                "Settings validation failed",
                extra={"operation": "settings", "error_type": type(exc).__name__},
            )
            raise SettingsError(msg, cause=exc, context={"validation_error": str(exc)}) from exc


def load_settings(**overrides: object) -> FetchSettings:
    """Load :class:`FetchSettings` with optional overrides.

    Parameters
    ----------
    **overrides : object
        Field overrides, e.g. ``retry={"attempts": 5}``.

    Returns
    -------
    FetchSettings
        Validated settings.

    Raises
    ------
    SettingsError
        If validation fails.
    """
    return FetchSettings(**overrides)


@lru_cache(maxsize=1)
def _cached_settings() -> FetchSettings:
    return load_settings()


def get_settings(*, reload: bool = False) -> FetchSettings:
    """Return process-wide settings, loading them from the environment once.

    Parameters
    ----------
    reload : bool, optional
        Drop the cached instance and re-read the environment. Defaults to False.

    Returns
    -------
    FetchSettings
        Cached settings.
    """
    if reload:
        _cached_settings.cache_clear()
    return _cached_settings()
