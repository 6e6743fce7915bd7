"""Classified provider call results.

Every provider adapter returns one of these variants instead of raising
for upstream failures. The retry policy and the image tiers branch on the
variant, never on exception types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, ClassVar, Mapping, Union

import httpx

__all__ = [
    "PermanentFailure",
    "ProviderResult",
    "RateLimited",
    "ResultKind",
    "Success",
    "TransientFailure",
    "ValidationFailure",
    "classify_exception",
    "classify_response",
    "parse_retry_after",
]


class ResultKind(str, Enum):
    """Discriminator for ProviderResult variants."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    VALIDATION = "validation"


@dataclass(frozen=True)
class Success:
    """Successful call carrying its payload (text, URL or ImagePayload)."""

    value: Any
    kind: ClassVar[ResultKind] = ResultKind.SUCCESS
    ok: ClassVar[bool] = True
    retryable: ClassVar[bool] = False

    def describe(self) -> str:
        return "success"


@dataclass(frozen=True)
class RateLimited:
    """Provider asked us to slow down.

    Attributes:
        retry_after: Advertised wait in seconds, if the provider sent one.
    """

    retry_after: float | None = None
    cause: str = "rate limited"
    kind: ClassVar[ResultKind] = ResultKind.RATE_LIMITED
    ok: ClassVar[bool] = False
    retryable: ClassVar[bool] = True

    def describe(self) -> str:
        if self.retry_after is not None:
            return f"rate limited (retry after {self.retry_after:g}s)"
        return "rate limited"


@dataclass(frozen=True)
class TransientFailure:
    """Network error, timeout or 5xx. Worth retrying."""

    cause: str
    status_code: int | None = None
    kind: ClassVar[ResultKind] = ResultKind.TRANSIENT
    ok: ClassVar[bool] = False
    retryable: ClassVar[bool] = True

    def describe(self) -> str:
        return f"transient: {self.cause}"


@dataclass(frozen=True)
class PermanentFailure:
    """Request rejected in a way retrying will not fix."""

    cause: str
    status_code: int | None = None
    kind: ClassVar[ResultKind] = ResultKind.PERMANENT
    ok: ClassVar[bool] = False
    retryable: ClassVar[bool] = False

    def describe(self) -> str:
        return f"permanent: {self.cause}"


@dataclass(frozen=True)
class ValidationFailure:
    """Call succeeded but the payload was unusable.

    Undersized bodies, placeholder images and unreachable URLs land here.
    """

    cause: str
    kind: ClassVar[ResultKind] = ResultKind.VALIDATION
    ok: ClassVar[bool] = False
    retryable: ClassVar[bool] = False

    def describe(self) -> str:
        return f"validation: {self.cause}"


ProviderResult = Union[
    Success, RateLimited, TransientFailure, PermanentFailure, ValidationFailure
]


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header value into seconds.

    Accepts delta-seconds or an HTTP date. Returns None when absent or
    unparseable; negative values clamp to zero.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def classify_response(
    status_code: int, headers: Mapping[str, str] | None = None
) -> ProviderResult | None:
    """Classify a non-2xx HTTP status.

    Returns None for 2xx responses so callers can go on to read the body.

    Mapping:
        429 -> RateLimited (Retry-After honoured when present)
        408, 5xx -> TransientFailure
        anything else -> PermanentFailure
    """
    if 200 <= status_code < 300:
        return None
    if status_code == 429:
        retry_after = parse_retry_after((headers or {}).get("retry-after"))
        return RateLimited(retry_after=retry_after, cause="HTTP 429")
    if status_code == 408 or status_code >= 500:
        return TransientFailure(cause=f"HTTP {status_code}", status_code=status_code)
    return PermanentFailure(cause=f"HTTP {status_code}", status_code=status_code)


def classify_exception(exc: Exception) -> ProviderResult:
    """Classify an exception raised while talking to a provider.

    Transport errors and timeouts are transient. Anything else (bad JSON,
    unexpected payload shapes) is permanent for this provider.
    """
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return TransientFailure(cause=f"timeout: {type(exc).__name__}")
    if isinstance(exc, httpx.TransportError):
        return TransientFailure(cause=f"network: {type(exc).__name__}: {exc}")
    if isinstance(exc, httpx.HTTPStatusError):
        result = classify_response(exc.response.status_code, exc.response.headers)
        if result is not None:
            return result
    return PermanentFailure(cause=f"{type(exc).__name__}: {exc}")
