"""WhatsApp session endpoints: connect, status, disconnect and group fetch."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from services.errors import SessionNotReadyError
from services.group_sync import GroupSynchronizer
from services.session_manager import SessionManager


def _session_manager(request: Request) -> SessionManager:
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise HTTPException(status_code=500, detail="Session manager not initialized.")
    return manager


def _group_synchronizer(request: Request) -> GroupSynchronizer:
    synchronizer = getattr(request.app.state, "group_synchronizer", None)
    if synchronizer is None:
        raise HTTPException(status_code=500, detail="Group synchronizer not initialized.")
    return synchronizer


async def connect(request: Request) -> Dict[str, Any]:
    """Start the WhatsApp client; the login token shows up in the status."""
    await _session_manager(request).connect()
    return {"success": True, "message": "Connecting to WhatsApp...", "data": None}


async def get_status(request: Request) -> Dict[str, Any]:
    status = await _session_manager(request).get_status()
    return {"success": True, "message": "Status retrieved", "data": status}


async def disconnect(request: Request) -> Dict[str, Any]:
    await _session_manager(request).disconnect()
    return {"success": True, "message": "Disconnected", "data": None}


async def fetch_groups(request: Request) -> Dict[str, Any]:
    """Synchronize groups from WhatsApp into the cache.

    Raises:
        HTTPException(400) if the session is not ready.
    """
    try:
        groups = await _group_synchronizer(request).fetch_groups()
    except SessionNotReadyError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "success": True,
        "message": "Groups fetched",
        "data": {"groups": [group.to_dict() for group in groups], "count": len(groups)},
    }
