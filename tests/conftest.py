"""Shared test fixtures: a scriptable automation client and wired services."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable

import pytest

from dal.group_dal import InMemoryGroupDAL
from dal.session_dal import InMemorySessionDAL
from models.chat_models import ChatRecord, Participant
from models.session_models import AccountIdentity
from services.automation_client import ClientEvent
from services.group_service import GroupService
from services.group_sync import GroupSynchronizer
from services.session_manager import SessionManager

OWN_ID = "5511999990000@s.whatsapp.net"
OWN_NUMBER = "5511999990000"

# ---------------------------------------------------------------------------
# Fake automation client
# ---------------------------------------------------------------------------


class FakeAutomationClient:
    """In-process stand-in for the WhatsApp automation client.

    Tests drive the lifecycle explicitly (``issue_token``, ``authenticate``,
    ``become_ready``, ``drop``) or pass a ``script`` of event names that
    ``connect()`` plays back immediately.
    """

    def __init__(
        self,
        chats: Iterable[ChatRecord] = (),
        account_id: str = OWN_ID,
        script: Iterable[str] = (),
    ) -> None:
        self.handlers: dict[ClientEvent, list] = defaultdict(list)
        self.chats = list(chats)
        self.account_id = account_id
        self.script = list(script)
        self._own_id: str | None = None
        self.connect_calls = 0
        self.terminate_calls = 0
        self.connect_error: Exception | None = None
        self.terminate_error: Exception | None = None
        self.list_error: Exception | None = None

    @property
    def own_id(self) -> str | None:
        return self._own_id

    def on(self, event: ClientEvent, handler) -> None:
        self.handlers[ClientEvent(event)].append(handler)

    async def emit(self, event: ClientEvent, *args: Any) -> None:
        for handler in list(self.handlers[event]):
            await handler(*args)

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        for step in self.script:
            if step == "token":
                await self.issue_token()
            elif step == "authenticated":
                await self.authenticate()
            elif step == "ready":
                await self.become_ready()

    async def list_chats(self) -> list[ChatRecord]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.chats)

    async def terminate(self) -> None:
        self.terminate_calls += 1
        if self.terminate_error is not None:
            raise self.terminate_error
        self._own_id = None
        await self.emit(ClientEvent.TERMINATED, "terminated")

    async def issue_token(self, token: str = "2@qr-payload,abc,def") -> None:
        await self.emit(ClientEvent.LOGIN_TOKEN_ISSUED, token)

    async def authenticate(self) -> None:
        await self.emit(ClientEvent.AUTHENTICATED)

    async def become_ready(self, name: str = "Alice") -> None:
        self._own_id = self.account_id
        number = self.account_id.split("@", 1)[0]
        await self.emit(ClientEvent.READY, AccountIdentity(name=name, number=number))

    async def drop(self, reason: str = "NAVIGATION") -> None:
        self._own_id = None
        await self.emit(ClientEvent.TERMINATED, reason)


class FakeClientFactory:
    """Client factory recording every client it builds."""

    def __init__(self, **client_kwargs: Any) -> None:
        self.client_kwargs = client_kwargs
        self.created: list[FakeAutomationClient] = []

    def __call__(self) -> FakeAutomationClient:
        client = FakeAutomationClient(**self.client_kwargs)
        self.created.append(client)
        return client

    @property
    def last(self) -> FakeAutomationClient:
        return self.created[-1]


class StaticTokenRenderer:
    """Skips QR rendering so lifecycle tests can assert on the raw token."""

    def render(self, token: str) -> str:
        return f"rendered:{token}"


# ---------------------------------------------------------------------------
# Chat helpers
# ---------------------------------------------------------------------------


def make_chat(
    chat_id: str,
    name: str,
    members: int = 3,
    admin: bool = False,
    is_group: bool = True,
    created: int = 1_700_000_000,
    description: str | None = None,
) -> ChatRecord:
    participants = [Participant(id=f"55119000{i:05d}@s.whatsapp.net") for i in range(members)]
    if admin:
        participants.append(Participant(id=OWN_ID, is_admin=True))
    return ChatRecord(
        id=chat_id,
        name=name,
        is_group=is_group,
        description=description,
        participants=participants,
        created_at_epoch=created,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def session_dal() -> InMemorySessionDAL:
    return InMemorySessionDAL()


@pytest.fixture
def group_dal() -> InMemoryGroupDAL:
    return InMemoryGroupDAL()


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def manager(session_dal, client_factory) -> SessionManager:
    return SessionManager(session_dal, client_factory, token_renderer=StaticTokenRenderer())


@pytest.fixture
def synchronizer(manager, group_dal) -> GroupSynchronizer:
    return GroupSynchronizer(manager, group_dal)


@pytest.fixture
def group_service(group_dal) -> GroupService:
    return GroupService(group_dal)
