"""Typed exception hierarchy with Problem Details support.

All fetchkit exceptions inherit from :class:`FetchKitError`, which carries a
stable :class:`~fetchkit.errors.codes.ErrorCode`, an HTTP status for Problem
Details rendering, and an optional context mapping.

Examples
--------
>>> from fetchkit.errors import HttpError, ErrorCode
>>> try:
...     raise HttpError("Boom", status=500)
... except HttpError as e:
...     assert e.code == ErrorCode.HTTP_ERROR
...     assert e.message == "Boom"
...     details = e.to_problem_details(instance="/users/1")
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fetchkit.errors.codes import ErrorCode, get_type_uri

__all__ = [
    "CancellationError",
    "ConfigurationError",
    "DecodeError",
    "FetchKitError",
    "HttpError",
    "PolicyError",
    "SettingsError",
]


class FetchKitError(Exception):
    """Base exception for all fetchkit errors.

    Parameters
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode, optional
        Stable error code. Defaults to ``ErrorCode.RUNTIME_ERROR``.
    http_status : int, optional
        Status used when rendering Problem Details. Defaults to 500.
    log_level : int, optional
        Level callers should log this error at. Defaults to ``logging.ERROR``.
    cause : BaseException | None, optional
        Underlying exception, stored as ``__cause__``. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional structured details. Defaults to None.

    Attributes
    ----------
    message : str
        Human-readable error message.
    code : ErrorCode
        Error code enum value.
    http_status : int
        HTTP status code for Problem Details responses.
    log_level : int
        Logging level for error logging.
    context : dict[str, object]
        Additional context dictionary for error details.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.RUNTIME_ERROR,
        http_status: int = 500,
        log_level: int = logging.ERROR,
        cause: BaseException | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status
        self.log_level = log_level
        self.context = dict(context) if context else {}
        if cause is not None:
            self.__cause__ = cause

    def to_problem_details(
        self,
        instance: str | None = None,
        title: str | None = None,
    ) -> dict[str, Any]:
        """Convert to an RFC 9457 Problem Details mapping.

        Parameters
        ----------
        instance : str | None, optional
            URI identifying the specific occurrence. Defaults to None.
        title : str | None, optional
            Short summary. Defaults to the exception class name.

        Returns
        -------
        dict[str, Any]
            Payload with ``type``, ``title``, ``status``, ``detail``,
            ``instance`` and ``code``; ``extensions`` when context is present.
        """
        payload: dict[str, Any] = {
            "type": get_type_uri(self.code),
            "title": title or self.__class__.__name__,
            "status": self.http_status,
            "detail": self.message,
            "instance": instance or "urn:fetchkit:error",
            "code": self.code.value,
        }
        if self.context:
            payload["extensions"] = dict(self.context)
        return payload

    def __str__(self) -> str:
        """Return ``"<ClassName>[<code>]: <message>"``.

        Returns
        -------
        str
            Formatted error string.
        """
        base = f"{self.__class__.__name__}[{self.code.value}]: {self.message}"
        if self.__cause__:
            base += f" (caused by: {type(self.__cause__).__name__})"
        return base


class ConfigurationError(FetchKitError):
    """Invalid caller-supplied options.

    Raised synchronously, before any I/O, and never retried.

    Examples
    --------
    >>> error = ConfigurationError("retry: attempts must be at least 1")
    >>> error.code
    <ErrorCode.CONFIGURATION_ERROR: 'configuration-error'>
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            http_status=500,
            log_level=logging.CRITICAL,
            cause=cause,
            context=context,
        )

    @classmethod
    def with_details(
        cls,
        *,
        field: str,
        issue: str,
        hint: str | None = None,
    ) -> ConfigurationError:
        """Create a ConfigurationError with structured validation details.

        Parameters
        ----------
        field : str
            Name of the option that failed validation.
        issue : str
            Description of the validation issue.
        hint : str | None, optional
            Optional hint for resolving the issue. Defaults to ``None``.

        Returns
        -------
        ConfigurationError
            New instance with details captured in context.
        """
        details: dict[str, object] = {"field": field, "issue": issue}
        if hint is not None:
            details["hint"] = hint
        message = f"Configuration validation failed for field '{field}': {issue}"
        return cls(message, context=details)


class SettingsError(FetchKitError):
    """Environment-driven settings failed validation.

    Parameters
    ----------
    message : str
        Human-readable error message.
    errors : list[dict[str, object]] | None, optional
        Validation error entries merged into ``context["validation_errors"]``.
    cause : Exception | None, optional
        Underlying validation exception. Defaults to None.
    context : Mapping[str, object] | None, optional
        Additional context dictionary. Defaults to None.
    """

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, object]] | None = None,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        combined_context: dict[str, object] = dict(context or {})
        if errors:
            combined_context.setdefault("validation_errors", [dict(error) for error in errors])
        super().__init__(
            message,
            code=ErrorCode.CONFIGURATION_ERROR,
            http_status=500,
            cause=cause,
            context=combined_context,
        )


class HttpError(FetchKitError):
    """Remote server answered with a non-success status.

    Parameters
    ----------
    message : str
        Message extracted from the error body, or the generic status message.
    status : int
        HTTP status code of the response.
    headers : Mapping[str, str] | None, optional
        Response headers. Defaults to None.

    Attributes
    ----------
    message : str
        The extracted error text exactly, e.g. ``"Boom"`` for a
        ``{"message": "Boom"}`` body. ``str(error)`` adds the class name and
        code prefix, as for every :class:`FetchKitError`.
    status : int
        HTTP status code.
    headers : dict[str, str]
        Response headers (empty when not supplied).
    """

    def __init__(
        self,
        message: str,
        *,
        status: int,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.HTTP_ERROR,
            http_status=status if 400 <= status <= 599 else 502,
            log_level=logging.WARNING,
            context={"status": status},
        )
        self.status = status
        self.headers = dict(headers or {})


class DecodeError(FetchKitError):
    """A success response declared as JSON carried a malformed body."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.DECODE_ERROR,
            http_status=502,
            cause=cause,
            context=context,
        )


class CancellationError(FetchKitError):
    """Default reason recorded by a cancelled :class:`~fetchkit.cancellation.CancellationSignal`."""

    def __init__(self, message: str = "The operation was cancelled") -> None:
        super().__init__(
            message,
            code=ErrorCode.CANCELLED,
            http_status=499,
            log_level=logging.INFO,
        )


class PolicyError(FetchKitError):
    """A retry policy document failed schema validation or could not be parsed."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.POLICY_ERROR,
            http_status=500,
            cause=cause,
            context=context,
        )
