"""Retry policy documents loaded from YAML.

A policy names an attempt budget, a wait strategy and the failures worth
retrying. Documents are validated against ``policy.schema.json`` and turned
into :class:`~fetchkit.retry.RetryOptions` with
:meth:`RetryPolicy.to_retry_options`.

Example document::

    name: idempotent-default
    attempts: 4
    wait: {kind: exponential, initial_ms: 200, base: 2.0, jitter: 0.15, max_ms: 5000}
    retry_on:
      status: [429, "500-504"]
      exceptions: [ConnectError, ReadTimeout]
    give_up_on_status: [501]
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from fetchkit.backoff import DelayFunction, exponential_backoff, fixed_delay
from fetchkit.cancellation import CancellationSignal
from fetchkit.errors import HttpError, PolicyError
from fetchkit.logging import get_logger
from fetchkit.retry import RetryOptions

__all__ = ["SCHEMA_PATH", "PolicyRegistry", "RetryPolicy", "load_policy"]

logger = get_logger(__name__)

SCHEMA_PATH = Path(__file__).with_name("policy.schema.json")

StatusEntry = tuple[int, int] | int


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy configuration document.

    Attributes
    ----------
    name : str
        Policy name identifier.
    description : str | None
        Human-readable description of the policy.
    attempts : int
        Total attempts, first try included.
    wait_kind : str
        ``"exponential"`` or ``"fixed"``.
    wait_initial_ms : float
        Fixed delay, or exponential base delay, in milliseconds.
    wait_base : float
        Growth factor for exponential backoff.
    wait_jitter : float
        Jitter fraction (0.0 to 1.0).
    wait_max_ms : float | None
        Upper bound on the exponential delay.
    retry_status : tuple[tuple[int, int] | int, ...]
        Status codes or inclusive ranges that are retried.
    retry_exceptions : tuple[str, ...]
        Exception class names that are retried.
    give_up_status : tuple[int, ...]
        Status codes that are never retried.
    """

    name: str
    description: str | None
    attempts: int
    wait_kind: str
    wait_initial_ms: float
    wait_base: float
    wait_jitter: float
    wait_max_ms: float | None
    retry_status: tuple[StatusEntry, ...]
    retry_exceptions: tuple[str, ...]
    give_up_status: tuple[int, ...]

    def delay_function(self) -> DelayFunction:
        """Return the delay function described by the ``wait`` block.

        Returns
        -------
        DelayFunction
            Fixed or jittered exponential delay function.
        """
        if self.wait_kind == "fixed":
            return fixed_delay(self.wait_initial_ms)
        return exponential_backoff(
            initial_ms=self.wait_initial_ms,
            base=self.wait_base,
            jitter=self.wait_jitter,
            max_ms=self.wait_max_ms,
        )

    def retryable(self, error: BaseException, attempt: int) -> bool:
        """Decide whether ``error`` should be retried under this policy.

        Parameters
        ----------
        error : BaseException
            Error raised by the attempt.
        attempt : int
            Attempts made so far (unused; status and type decide).

        Returns
        -------
        bool
            True if the error matches ``retry_on`` and not ``give_up_on_status``.
        """
        del attempt
        if isinstance(error, HttpError):
            if error.status in self.give_up_status:
                return False
            if _status_in_sets(error.status, self.retry_status):
                return True
        names = {cls.__name__ for cls in type(error).__mro__}
        return bool(names.intersection(self.retry_exceptions))

    def to_retry_options(self, signal: CancellationSignal | None = None) -> RetryOptions:
        """Build :class:`~fetchkit.retry.RetryOptions` for this policy.

        Parameters
        ----------
        signal : CancellationSignal | None, optional
            Cancellation handle to attach. Defaults to None.

        Returns
        -------
        RetryOptions
            Options with this policy's budget, delay and predicate.
        """
        return RetryOptions(
            attempts=self.attempts,
            delay=self.delay_function(),
            signal=signal,
            retryable=self.retryable,
        )


def _parse_status_entry(x: int | str) -> StatusEntry:
    """Parse status code entry from YAML (int or ``"lo-hi"`` range string).

    Parameters
    ----------
    x : int | str
        Status code or range string like ``"500-504"``.

    Returns
    -------
    tuple[int, int] | int
        Status code or range tuple.
    """
    if isinstance(x, int):
        return x
    lo, hi = x.split("-", 1)
    return (int(lo), int(hi))


def _status_in_sets(status: int, sets: tuple[StatusEntry, ...]) -> bool:
    for x in sets:
        if isinstance(x, int) and status == x:
            return True
        if isinstance(x, tuple) and x[0] <= status <= x[1]:
            return True
    return False


def load_policy(path: Path, schema_path: Path | None = SCHEMA_PATH) -> RetryPolicy:
    """Load and validate a retry policy from a YAML file.

    Parameters
    ----------
    path : Path
        Policy YAML file.
    schema_path : Path | None, optional
        JSON schema for validation; None skips validation. Defaults to the
        bundled ``policy.schema.json``.

    Returns
    -------
    RetryPolicy
        Parsed policy.

    Raises
    ------
    PolicyError
        If the document is not valid YAML or fails schema validation.

    Notes
    -----
    ``FileNotFoundError`` from reading ``path`` propagates unchanged.
    """
    try:
        obj: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        msg = f"Retry policy {path.name} is not valid YAML"
        raise PolicyError(msg, cause=exc, context={"path": str(path)}) from exc
    if schema_path is not None and schema_path.exists():
        try:
            jsonschema.validate(obj, json.loads(schema_path.read_text(encoding="utf-8")))
        except jsonschema.ValidationError as exc:
            msg = f"Retry policy {path.name} failed validation: {exc.message}"
            raise PolicyError(msg, cause=exc, context={"path": str(path)}) from exc

    wait = obj.get("wait", {})
    retry_on = obj.get("retry_on", {})
    max_ms = wait.get("max_ms")
    policy = RetryPolicy(
        name=obj["name"],
        description=obj.get("description"),
        attempts=int(obj["attempts"]),
        wait_kind=wait.get("kind", "exponential"),
        wait_initial_ms=float(wait.get("initial_ms", 200)),
        wait_base=float(wait.get("base", 2.0)),
        wait_jitter=float(wait.get("jitter", 0.15)),
        wait_max_ms=float(max_ms) if max_ms is not None else None,
        retry_status=tuple(_parse_status_entry(s) for s in retry_on.get("status", [])),
        retry_exceptions=tuple(retry_on.get("exceptions", [])),
        give_up_status=tuple(obj.get("give_up_on_status", [])),
    )
    logger.debug(
        "Loaded retry policy",
        extra={"operation": "load_policy", "policy": policy.name, "path": str(path)},
    )
    return policy


class PolicyRegistry:
    """Registry for loading retry policies from a directory.

    Parameters
    ----------
    root : Path
        Directory containing ``<name>.yaml`` policy files.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def get(self, name: str) -> RetryPolicy:
        """Load policy by name.

        Parameters
        ----------
        name : str
            Policy name (without .yaml extension).

        Returns
        -------
        RetryPolicy
            Loaded policy document.

        Raises
        ------
        FileNotFoundError
            If policy file does not exist.
        """
        p = self.root / f"{name}.yaml"
        if not p.exists():
            raise FileNotFoundError(p)
        return load_policy(p)
