"""WhatsApp automation client backed by neonize (whatsmeow Python bindings)."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from neonize.aioze import client as neonize_client
from neonize.aioze import events as neonize_events
from neonize.aioze.client import NewAClient
from neonize.events import (
    ConnectedEv,
    ConnectFailureEv,
    DisconnectedEv,
    LoggedOutEv,
    PairStatusEv,
)

from models.chat_models import ChatRecord, Participant
from models.session_models import AccountIdentity
from services.automation_client import ClientEvent, EventHandler

LOGGER = logging.getLogger(__name__)

DEFAULT_PUSH_NAME = "User"


def _jid_to_str(jid: Any) -> str:
    """Serialize a JID without the device suffix (``user@server``)."""
    user = getattr(jid, "User", "") or ""
    server = getattr(jid, "Server", "") or ""
    if not user:
        return ""
    return f"{user}@{server}" if server else user


class NeonizeAutomationClient:
    """`AutomationClient` implementation talking to WhatsApp through neonize.

    Login state is kept in ``<store_dir>/<session_id>.db`` so a linked device
    survives restarts.
    """

    def __init__(self, store_dir: Path, session_id: str) -> None:
        self._store_dir = Path(store_dir)
        self._auth_db = str(self._store_dir / f"{session_id}.db")
        self._handlers: Dict[ClientEvent, List[EventHandler]] = defaultdict(list)
        self._client: Optional[NewAClient] = None
        self._idle_task: Optional[asyncio.Task[None]] = None
        self._own_id: Optional[str] = None

    @property
    def own_id(self) -> Optional[str]:
        return self._own_id

    def on(self, event: ClientEvent, handler: EventHandler) -> None:
        self._handlers[ClientEvent(event)].append(handler)

    async def connect(self) -> None:
        # Neonize keeps module-level loop references; bind both to this loop.
        loop = asyncio.get_running_loop()
        neonize_events.event_global_loop = loop
        neonize_client.event_global_loop = loop

        self._store_dir.mkdir(parents=True, exist_ok=True)
        client = NewAClient(self._auth_db)
        self._register_events(client)
        self._client = client

        await client.connect()
        self._idle_task = asyncio.ensure_future(client.idle())

    async def list_chats(self) -> List[ChatRecord]:
        if self._client is None:
            raise RuntimeError("WhatsApp client is not connected")
        groups = await self._client.get_joined_groups()
        return [self._group_to_chat(group) for group in groups]

    async def terminate(self) -> None:
        client = self._client
        self._client = None
        self._own_id = None
        if self._idle_task is not None:
            self._idle_task.cancel()
            self._idle_task = None
        if client is not None:
            await client.disconnect()
        await self._emit(ClientEvent.TERMINATED, "terminated")

    async def _emit(self, event: ClientEvent, *args: Any) -> None:
        for handler in list(self._handlers[event]):
            try:
                await handler(*args)
            except Exception:
                LOGGER.exception("Handler for %s failed", event.value)

    def _register_events(self, client: NewAClient) -> None:
        @client.event.qr
        async def on_qr(_client: NewAClient, qr_data: bytes) -> None:
            token = qr_data.decode("utf-8") if isinstance(qr_data, bytes) else str(qr_data)
            await self._emit(ClientEvent.LOGIN_TOKEN_ISSUED, token)

        @client.event(PairStatusEv)
        async def on_pair_status(_client: NewAClient, ev: PairStatusEv) -> None:
            LOGGER.info("WhatsApp paired as %s", ev.ID.User)
            await self._emit(ClientEvent.AUTHENTICATED)

        @client.event(ConnectedEv)
        async def on_connected(_client: NewAClient, _ev: ConnectedEv) -> None:
            identity = self._read_identity(client)
            await self._emit(ClientEvent.READY, identity)

        @client.event(DisconnectedEv)
        async def on_disconnected(_client: NewAClient, _ev: DisconnectedEv) -> None:
            # whatsmeow reconnects on its own after a plain disconnect
            LOGGER.warning("WhatsApp connection dropped; waiting for reconnect")

        @client.event(LoggedOutEv)
        async def on_logged_out(_client: NewAClient, _ev: LoggedOutEv) -> None:
            self._own_id = None
            await self._emit(ClientEvent.TERMINATED, "logged out")

        @client.event(ConnectFailureEv)
        async def on_connect_failure(_client: NewAClient, _ev: ConnectFailureEv) -> None:
            self._own_id = None
            await self._emit(ClientEvent.TERMINATED, "connection failure")

    def _read_identity(self, client: NewAClient) -> AccountIdentity:
        device = client.me
        jid = getattr(device, "JID", None)
        self._own_id = _jid_to_str(jid) or None
        number = getattr(jid, "User", "") or ""
        name = getattr(device, "PushName", "") or DEFAULT_PUSH_NAME
        return AccountIdentity(name=name, number=number)

    @staticmethod
    def _group_to_chat(group: Any) -> ChatRecord:
        participants = [
            Participant(
                id=_jid_to_str(p.JID),
                is_admin=bool(getattr(p, "IsAdmin", False) or getattr(p, "IsSuperAdmin", False)),
            )
            for p in getattr(group, "Participants", [])
        ]
        topic = getattr(getattr(group, "GroupTopic", None), "Topic", "") or None
        try:
            created = int(getattr(group, "GroupCreated", 0) or 0)
        except (TypeError, ValueError):
            created = 0
        return ChatRecord(
            id=_jid_to_str(group.JID),
            name=group.GroupName.Name,
            is_group=True,
            description=topic,
            participants=participants,
            created_at_epoch=created,
        )
