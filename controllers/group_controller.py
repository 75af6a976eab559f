"""Read and clear endpoints over the cached groups."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from services.errors import InvalidSearchTermError
from services.group_service import GroupService


def _group_service(request: Request) -> GroupService:
    service = getattr(request.app.state, "group_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Group service not initialized.")
    return service


async def list_groups(request: Request) -> Dict[str, Any]:
    groups = await _group_service(request).get_all()
    return {
        "success": True,
        "message": "Groups retrieved",
        "data": {"groups": [group.to_dict() for group in groups], "count": len(groups)},
    }


async def get_group(request: Request, group_id: str) -> Dict[str, Any]:
    """Return one cached group.

    Raises:
        HTTPException(404) if the group is not cached.
    """
    group = await _group_service(request).get_by_id(group_id)
    if group is None:
        raise HTTPException(status_code=404, detail="Group not found")
    return {"success": True, "message": "Group found", "data": group.to_dict()}


async def search_groups(request: Request, term: Optional[str]) -> Dict[str, Any]:
    """Search cached groups by name.

    Raises:
        HTTPException(400) if the term is missing or shorter than two characters.
    """
    try:
        groups = await _group_service(request).search(term or "")
    except InvalidSearchTermError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "success": True,
        "message": "Search completed",
        "data": {
            "groups": [group.to_dict() for group in groups],
            "count": len(groups),
            "searchTerm": (term or "").strip(),
        },
    }


async def group_stats(request: Request) -> Dict[str, Any]:
    stats = await _group_service(request).stats()
    return {"success": True, "message": "Statistics retrieved", "data": stats.to_dict()}


async def clear_groups(request: Request) -> Dict[str, Any]:
    await _group_service(request).clear()
    return {"success": True, "message": "Groups cleared", "data": None}
