"""GET /health — Liveness check."""

from fastapi import APIRouter, Depends

from ..dependencies import get_manager
from ..session import SessionManager

router = APIRouter()


@router.get("/health")
async def health(manager: SessionManager = Depends(get_manager)):
    return {
        "status": "ok",
        "provider": manager.provider_name,
        "sessions": len(manager.provider),
    }
