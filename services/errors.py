"""Error types raised by the session, group and throttle services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from models.throttle_models import ThrottleDecision


class ZapGroupsError(Exception):
    """Base class for service-level errors."""


class SessionNotReadyError(ZapGroupsError):
    """A group operation was attempted before the WhatsApp session was ready."""

    def __init__(self, message: str = "WhatsApp is not connected") -> None:
        super().__init__(message)


class InvalidSearchTermError(ZapGroupsError, ValueError):
    """Search term rejected before touching the cache."""


class ThrottledError(ZapGroupsError):
    """Admission denied by the request throttle."""

    def __init__(self, decision: "ThrottleDecision", message: str = "Too many requests") -> None:
        super().__init__(message)
        self.decision = decision
        self.retry_after = decision.retry_after


class UpstreamError(ZapGroupsError):
    """The automation client or a store failed while serving a request."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause
