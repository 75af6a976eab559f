"""Group store contract and its in-memory implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from models.group_record import Group


class GroupDAL(ABC):
    """Full-replace cache of synchronized groups."""

    @abstractmethod
    async def replace_all(self, groups: Iterable[Group]) -> None:
        """Drop every cached group and store ``groups`` in their place."""

    @abstractmethod
    async def get_all(self) -> List[Group]:
        """Return cached groups in insertion order."""

    @abstractmethod
    async def get_by_id(self, group_id: str) -> Optional[Group]:
        """Return the group with ``group_id`` or None."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove all cached groups."""


class InMemoryGroupDAL(GroupDAL):
    """Dict-backed group cache; dict order gives stable listing."""

    def __init__(self) -> None:
        self._groups: Dict[str, Group] = {}

    async def replace_all(self, groups: Iterable[Group]) -> None:
        self._groups = {group.id: group for group in groups}

    async def get_all(self) -> List[Group]:
        return list(self._groups.values())

    async def get_by_id(self, group_id: str) -> Optional[Group]:
        return self._groups.get(group_id)

    async def clear(self) -> None:
        self._groups = {}
