"""FastAPI routes for the WhatsApp session."""

from fastapi import APIRouter, HTTPException, Request

from controllers.whatsapp_controller import connect, disconnect, fetch_groups, get_status
from services.errors import ZapGroupsError

router = APIRouter(prefix="/api/whatsapp", tags=["whatsapp"])


@router.post("/connect")
async def connect_route(request: Request):
	try:
		return await connect(request)
	except (HTTPException, ZapGroupsError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/status")
async def status_route(request: Request):
	try:
		return await get_status(request)
	except (HTTPException, ZapGroupsError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/disconnect")
async def disconnect_route(request: Request):
	try:
		return await disconnect(request)
	except (HTTPException, ZapGroupsError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/groups/fetch")
async def fetch_groups_route(request: Request):
	"""Pull the group list from WhatsApp; 400 until the session is ready."""
	try:
		return await fetch_groups(request)
	except (HTTPException, ZapGroupsError):
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
