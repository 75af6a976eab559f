"""FastAPI routes for the cached group list."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from controllers.group_controller import clear_groups, get_group, group_stats, list_groups, search_groups
from services.errors import ZapGroupsError

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.get("")
async def list_groups_route(request: Request):
	try:
		return await list_groups(request)
	except (HTTPException, ZapGroupsError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("")
async def clear_groups_route(request: Request):
	try:
		return await clear_groups(request)
	except (HTTPException, ZapGroupsError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


# /search and /stats must be declared before /{group_id}
@router.get("/search")
async def search_groups_route(request: Request, q: Optional[str] = Query(None)):
	try:
		return await search_groups(request, q)
	except (HTTPException, ZapGroupsError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/stats")
async def group_stats_route(request: Request):
	try:
		return await group_stats(request)
	except (HTTPException, ZapGroupsError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{group_id}")
async def get_group_route(request: Request, group_id: str):
	try:
		return await get_group(request, group_id)
	except (HTTPException, ZapGroupsError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
