from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Participant:
    """One member of a chat as reported by the automation client."""

    id: str
    is_admin: bool = False


@dataclass
class ChatRecord:
    """Raw chat entry returned by ``AutomationClient.list_chats``.

    Attributes:
        id: Serialized chat identifier (e.g. ``1203630...@g.us``).
        name: Chat display name.
        is_group: True for group chats; direct chats are ignored by the sync.
        description: Optional group topic/description.
        participants: Members of the chat, with their admin flag.
        created_at_epoch: Creation time in Unix seconds (0 when unknown).
    """

    id: str
    name: str
    is_group: bool
    description: Optional[str] = None
    participants: List[Participant] = field(default_factory=list)
    created_at_epoch: int = 0
