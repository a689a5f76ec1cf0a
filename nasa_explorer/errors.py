"""
Classified errors raised by the NASA API client.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Failure taxonomy for upstream requests."""

    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    RATE_LIMITED = "rate_limited"
    BAD_REQUEST = "bad_request"
    NETWORK_UNREACHABLE = "network_unreachable"
    UNKNOWN = "unknown"


class NASAAPIError(Exception):
    """
    Error raised when a NASA endpoint call fails.

    The message is meant to be shown to the user as-is.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        endpoint: str = "",
        status: Optional[int] = None,
        upstream_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.endpoint = endpoint
        self.status = status
        self.upstream_message = upstream_message

    @property
    def retryable(self) -> bool:
        """True for transport-level failures."""
        return self.kind in (ErrorKind.NETWORK_UNREACHABLE, ErrorKind.TIMEOUT)

    def __repr__(self) -> str:
        return f"NASAAPIError(kind={self.kind.name}, status={self.status}, endpoint={self.endpoint!r})"
