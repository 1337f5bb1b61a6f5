"""Channel error types and mapping of HTTP client failures onto them."""

from __future__ import annotations
from typing import Optional

import httpx


class ChannelError(Exception):
    """Base class for everything the channel raises."""


class TransportError(ChannelError):
    """A call to the chat board failed (network, auth, rate limit, not found)."""

    def __init__(self, message: str, *, operation: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code


class DecodeError(ChannelError):
    """Transfer content could not be decoded back into bytes."""


class SizeViolation(ChannelError, ValueError):
    """Size limits leave no room for a usable inline chunk."""


def transport_error_from(exc: Exception, operation: str) -> TransportError:
    """Wrap an httpx failure into a TransportError with a short reason."""
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        if code == 429:
            reason = "rate limited"
        elif code in (401, 403):
            reason = "authentication failed"
        elif code == 404:
            reason = "not found"
        elif 500 <= code < 600:
            reason = "server error"
        else:
            reason = f"HTTP {code}"
        return TransportError(f"{operation}: {reason}", operation=operation, status_code=code)

    if isinstance(exc, httpx.TimeoutException):
        return TransportError(f"{operation}: request timed out", operation=operation)
    if isinstance(exc, httpx.ConnectError):
        return TransportError(f"{operation}: cannot connect", operation=operation)

    return TransportError(f"{operation}: {type(exc).__name__}: {exc}", operation=operation)
