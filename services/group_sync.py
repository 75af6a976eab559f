"""Pull the account's groups from WhatsApp into the group cache."""

from __future__ import annotations

import logging
from typing import Dict, List

from dal.group_dal import GroupDAL
from models.group_record import Group
from services.errors import UpstreamError
from services.session_manager import SessionManager

LOGGER = logging.getLogger(__name__)


class GroupSynchronizer:
    """Replace the cached group set with a fresh snapshot from the client."""

    def __init__(self, session_manager: SessionManager, group_dal: GroupDAL) -> None:
        self._manager = session_manager
        self._groups = group_dal

    async def fetch_groups(self) -> List[Group]:
        """Fetch, validate and cache every group of the connected account.

        Returns:
            The valid groups now held by the cache.

        Raises:
            SessionNotReadyError: If the session is not ready; the cache is untouched.
            UpstreamError: If listing chats or writing the cache fails.
        """
        client, own_id = self._manager.require_ready()

        try:
            chats = await client.list_chats()
        except Exception as exc:
            LOGGER.exception("Failed to list WhatsApp chats")
            raise UpstreamError("Failed to fetch groups from WhatsApp", exc) from exc

        candidates = [Group.from_chat(chat, own_id) for chat in chats if chat.is_group]
        unique: Dict[str, Group] = {}
        for group in candidates:
            # first occurrence of an id wins
            if group.is_valid() and group.id not in unique:
                unique[group.id] = group
        groups = list(unique.values())
        dropped = len(candidates) - len(groups)
        if dropped:
            LOGGER.debug("Dropped %d invalid or duplicate group candidate(s)", dropped)

        try:
            await self._groups.replace_all(groups)
        except Exception as exc:
            LOGGER.exception("Failed to store fetched groups")
            raise UpstreamError("Failed to store fetched groups", exc) from exc

        LOGGER.info("Synchronized %d group(s)", len(groups))
        return groups
