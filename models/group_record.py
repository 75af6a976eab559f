from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from models.chat_models import ChatRecord


@dataclass
class Group:
    """Cached snapshot of a WhatsApp group.

    Attributes:
        id: Serialized group identifier.
        name: Group display name.
        description: Group topic, empty string when the group has none.
        participant_count: Number of members at sync time. The member list
            itself is not kept.
        is_admin: Whether the connected account administers the group.
        created_at: Group creation time (UTC).
    """

    id: str
    name: str
    description: str = ""
    participant_count: int = 0
    is_admin: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_chat(cls, chat: ChatRecord, own_id: Optional[str]) -> "Group":
        """Build a candidate group from a raw chat record.

        The admin flag is true when ``own_id`` appears among the chat's
        participants flagged as admins.
        """
        participants = chat.participants or []
        is_admin = bool(own_id) and any(p.id == own_id and p.is_admin for p in participants)
        if chat.created_at_epoch:
            created_at = datetime.fromtimestamp(chat.created_at_epoch, tz=timezone.utc)
        else:
            created_at = datetime.now(timezone.utc)
        return cls(
            id=(chat.id or "").strip(),
            name=(chat.name or "").strip(),
            description=chat.description or "",
            participant_count=len(participants),
            is_admin=is_admin,
            created_at=created_at,
        )

    def is_valid(self) -> bool:
        return bool(self.id) and bool(self.name) and self.participant_count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "participantCount": self.participant_count,
            "isGroupAdmin": self.is_admin,
            "createdAt": self.created_at.isoformat(),
        }
