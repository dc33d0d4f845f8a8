"""Structured logging helpers with correlation IDs.

Loggers returned by :func:`get_logger` are wrapped in a :class:`LoggerAdapter`
that injects the structured request fields (``correlation_id``,
``operation``, ``status``) into every record. Library loggers carry a
``NullHandler``; applications opt in to JSON output with
:func:`setup_logging`.

Examples
--------
>>> from fetchkit.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.info("Request sent", extra={"operation": "fetch", "method": "GET"})
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Self

if TYPE_CHECKING:
    from types import TracebackType

__all__ = [
    "CorrelationContext",
    "JsonFormatter",
    "LoggerAdapter",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
    "setup_logging",
]

# Context variable for correlation ID propagation (async-safe)
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "fetchkit_correlation_id", default=None
)

_STRUCTURED_FIELDS = ("correlation_id", "operation", "status", "duration_ms")

# Attributes present on every LogRecord; never copied into the JSON payload.
_RECORD_ATTRIBUTES = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON documents.

    The payload always contains ``ts``, ``level``, ``name`` and ``message``.
    Structured fields and any JSON-safe ``extra`` values are appended; the
    correlation ID falls back to the one bound in the current context.

    Examples
    --------
    >>> import logging
    >>> handler = logging.StreamHandler()
    >>> handler.setFormatter(JsonFormatter())
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format ``record`` as JSON.

        Parameters
        ----------
        record : logging.LogRecord
            Record to format.

        Returns
        -------
        str
            JSON-encoded log entry.
        """
        data: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for field in _STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                data[field] = value
        if "correlation_id" not in data:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                data["correlation_id"] = ctx_correlation_id

        for key, value in record.__dict__.items():
            if (
                key not in _RECORD_ATTRIBUTES
                and key not in data
                and not key.startswith("_")
                and value is not None
                and isinstance(value, (str, int, float, bool, list, dict))
            ):
                data[key] = value

        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class LoggerAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter that injects structured context fields.

    Fields bound on the adapter are merged under the per-call ``extra``
    mapping (per-call values win). ``operation`` defaults to ``"unknown"``
    and ``status`` is inferred from the level when absent.

    Parameters
    ----------
    logger : logging.Logger
        Base logger instance to wrap.
    extra : Mapping[str, object] | None, optional
        Fields injected into every record. Defaults to None.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:  # noqa: ANN401
        """Merge bound fields and the context correlation ID into ``extra``.

        Parameters
        ----------
        msg : Any
            Log message.
        kwargs : Any
            Keyword arguments of the logging call.

        Returns
        -------
        tuple[Any, Any]
            Message and kwargs with ``extra`` populated.
        """
        extra = dict(kwargs.get("extra") or {})
        if isinstance(self.extra, Mapping):
            for key, value in self.extra.items():
                extra.setdefault(key, value)
        if "correlation_id" not in extra:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                extra["correlation_id"] = ctx_correlation_id
        extra.setdefault("operation", "unknown")
        kwargs["extra"] = extra
        return msg, kwargs

    def log(self, level: int, msg: object, *args: object, **kwargs: Any) -> None:  # noqa: ANN401
        """Log ``msg`` at ``level`` and infer ``status`` from the level."""
        if self.isEnabledFor(level):
            msg, kwargs = self.process(msg, kwargs)
            extra = kwargs["extra"]
            if "status" not in extra:
                if level >= logging.ERROR:
                    extra["status"] = "error"
                elif level >= logging.WARNING:
                    extra["status"] = "warning"
                else:
                    extra["status"] = "success"
            self.logger.log(level, msg, *args, **kwargs)

    def bind(self, **fields: object) -> LoggerAdapter:
        """Return a new adapter with ``fields`` added to the bound context.

        Returns
        -------
        LoggerAdapter
            Adapter sharing the same base logger.
        """
        merged = dict(self.extra or {})
        merged.update(fields)
        return LoggerAdapter(self.logger, merged)


def get_logger(name: str) -> LoggerAdapter:
    """Get a logger adapter with structured logging support.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__``).

    Returns
    -------
    LoggerAdapter
        Adapter over ``logging.getLogger(name)``.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return LoggerAdapter(logger, {})


def setup_logging(level: int | str | None = None) -> None:
    """Configure the root logger to emit JSON lines on stdout.

    Parameters
    ----------
    level : int | str | None, optional
        Logging threshold (``logging.DEBUG`` or ``"DEBUG"``). Defaults to
        ``FETCHKIT_LOG_LEVEL`` from the configured settings.
    """
    if level is None:
        from fetchkit.settings import get_settings  # noqa: PLC0415

        level = get_settings().observability.log_level.upper()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)


def set_correlation_id(correlation_id: str | None) -> None:
    """Bind ``correlation_id`` to the current context."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Return the correlation ID bound to the current context.

    Returns
    -------
    str | None
        Correlation ID, or None when unset.
    """
    return _correlation_id.get()


class CorrelationContext:
    """Context manager scoping a correlation ID.

    The previous ID is restored on exit.

    Parameters
    ----------
    correlation_id : str | None
        Correlation ID to bind; None clears it inside the block.

    Examples
    --------
    >>> with CorrelationContext("req-123"):
    ...     assert get_correlation_id() == "req-123"
    """

    def __init__(self, correlation_id: str | None) -> None:
        self.correlation_id = correlation_id
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> Self:
        self._token = _correlation_id.set(self.correlation_id)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _correlation_id.reset(self._token)
            self._token = None
