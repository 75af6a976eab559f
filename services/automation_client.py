"""Contract between the session manager and the WhatsApp automation client."""

from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable, List, Optional, Protocol

from models.chat_models import ChatRecord


class ClientEvent(str, Enum):
    """Lifecycle events emitted by an automation client.

    Handler payloads:
        LOGIN_TOKEN_ISSUED: ``(token: str)`` raw QR payload to render.
        AUTHENTICATED: no arguments.
        READY: ``(identity: AccountIdentity)``.
        TERMINATED: ``(reason: str)``.
    """

    LOGIN_TOKEN_ISSUED = "login_token_issued"
    AUTHENTICATED = "authenticated"
    READY = "ready"
    TERMINATED = "terminated"


EventHandler = Callable[..., Awaitable[None]]


class AutomationClient(Protocol):
    """Capabilities the core needs from a WhatsApp automation client."""

    @property
    def own_id(self) -> Optional[str]:
        """Serialized id of the connected account, None until ready."""

    def on(self, event: ClientEvent, handler: EventHandler) -> None:
        """Register ``handler`` for ``event``."""

    async def connect(self) -> None:
        """Start connecting; progress is reported through events."""

    async def list_chats(self) -> List[ChatRecord]:
        """Return every chat visible to the connected account."""

    async def terminate(self) -> None:
        """Close the connection and release client resources."""


ClientFactory = Callable[[], AutomationClient]
