"""Read model over the cached WhatsApp groups."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dal.group_dal import GroupDAL
from models.group_record import Group
from services.errors import InvalidSearchTermError

MIN_SEARCH_LENGTH = 2


@dataclass(frozen=True)
class GroupStats:
    """Aggregates over the current cache."""

    total_groups: int = 0
    admin_groups: int = 0
    total_participants: int = 0
    average_participants: int = 0
    largest_group: Optional[Dict[str, Any]] = None
    smallest_group: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalGroups": self.total_groups,
            "adminGroups": self.admin_groups,
            "totalParticipants": self.total_participants,
            "averageParticipants": self.average_participants,
            "largestGroup": self.largest_group,
            "smallestGroup": self.smallest_group,
        }


def _size_summary(group: Group) -> Dict[str, Any]:
    return {"name": group.name, "participants": group.participant_count}


class GroupService:
    """Queries against the group cache."""

    def __init__(self, group_dal: GroupDAL) -> None:
        self._groups = group_dal

    async def get_all(self) -> List[Group]:
        return await self._groups.get_all()

    async def get_by_id(self, group_id: str) -> Optional[Group]:
        """Return the group, or None when it is not cached."""
        return await self._groups.get_by_id(group_id)

    async def search(self, term: str) -> List[Group]:
        """Case-insensitive substring match on group names.

        Raises:
            InvalidSearchTermError: If the trimmed term is shorter than two characters.
        """
        needle = (term or "").strip()
        if len(needle) < MIN_SEARCH_LENGTH:
            raise InvalidSearchTermError(
                f"Search term must have at least {MIN_SEARCH_LENGTH} characters"
            )
        needle = needle.casefold()
        groups = await self._groups.get_all()
        return [group for group in groups if needle in group.name.casefold()]

    async def stats(self) -> GroupStats:
        groups = await self._groups.get_all()
        if not groups:
            return GroupStats()

        total = sum(group.participant_count for group in groups)
        # max/min keep the first group on ties
        largest = max(groups, key=lambda g: g.participant_count)
        smallest = min(groups, key=lambda g: g.participant_count)
        return GroupStats(
            total_groups=len(groups),
            admin_groups=sum(1 for group in groups if group.is_admin),
            total_participants=total,
            average_participants=math.floor(total / len(groups) + 0.5),
            largest_group=_size_summary(largest),
            smallest_group=_size_summary(smallest),
        )

    async def clear(self) -> None:
        await self._groups.clear()
