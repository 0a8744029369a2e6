"""Inference failure classification.

The correlation agent falls back to its rules on any failure; the
class only decides what gets logged and whether a retry could help.
Structured signals (exception type, ``status_code``) are checked
before message text.
"""

from __future__ import annotations

import json
from enum import StrEnum

from circuitbreaker import CircuitBreakerError

from workstory.constants import ERROR_TRUNCATION_CHARS


class MalformedOutputError(ValueError):
    """Model output could not be parsed into the expected shape."""


class ErrorClass(StrEnum):
    RATE_LIMITED = "rate_limited"  # 429, backpressure
    NETWORK = "network"  # connection refused/reset
    SERVER = "server"  # 5xx
    TIMEOUT = "timeout"
    CLIENT = "client"  # 4xx other than 429; retrying will not help
    CIRCUIT_OPEN = "circuit_open"
    MALFORMED = "malformed"  # unparseable model output
    UNKNOWN = "unknown"


# Checked in order against the lowercased message.
_MESSAGE_HINTS: tuple[tuple[ErrorClass, tuple[str, ...]], ...] = (
    (ErrorClass.TIMEOUT, ("timeout", "timed out")),
    (ErrorClass.RATE_LIMITED, ("429", "rate limit", "rate_limit")),
    (ErrorClass.SERVER, ("500", "502", "503", "504")),
    (ErrorClass.NETWORK, ("econnrefused", "connection")),
    (ErrorClass.CLIENT, ("400", "401", "403", "404")),
)

_RETRYABLE = frozenset({
    ErrorClass.RATE_LIMITED,
    ErrorClass.NETWORK,
    ErrorClass.SERVER,
    ErrorClass.TIMEOUT,
})


def _from_status(status: int) -> ErrorClass | None:
    if status == 429:
        return ErrorClass.RATE_LIMITED
    if 400 <= status < 500:
        return ErrorClass.CLIENT
    if 500 <= status < 600:
        return ErrorClass.SERVER
    return None


def classify_error(error: BaseException) -> ErrorClass:
    if isinstance(error, CircuitBreakerError):
        return ErrorClass.CIRCUIT_OPEN
    if isinstance(error, (MalformedOutputError, json.JSONDecodeError)):
        return ErrorClass.MALFORMED

    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        by_status = _from_status(status)
        if by_status is not None:
            return by_status

    if isinstance(error, TimeoutError):
        return ErrorClass.TIMEOUT
    if isinstance(error, ConnectionError):
        return ErrorClass.NETWORK

    msg = str(error).lower()
    for error_class, hints in _MESSAGE_HINTS:
        if any(h in msg for h in hints):
            return error_class
    return ErrorClass.UNKNOWN


def is_retryable(error: BaseException) -> bool:
    return classify_error(error) in _RETRYABLE


def describe_error(error: BaseException) -> str:
    """``<class>: <message>`` with the message truncated for logs."""
    message = str(error)[:ERROR_TRUNCATION_CHARS] or type(error).__name__
    return f"{classify_error(error)}: {message}"
