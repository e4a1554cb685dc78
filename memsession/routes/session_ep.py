"""GET/PUT/DELETE /session — Read and write session data."""

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import events
from ..dependencies import get_session
from ..session import Session

router = APIRouter()

_MISSING = object()


class SessionValue(BaseModel):
    value: Any


@router.get("/session")
async def read_session(session: Session = Depends(get_session)):
    return {
        "session": events.fingerprint(session.session_id),
        "data": session.to_dict(),
    }


@router.get("/session/{key}")
async def read_value(key: str, session: Session = Depends(get_session)):
    value = session.get(key, _MISSING)
    if value is _MISSING:
        return JSONResponse({"error": "Key not found", "key": key}, status_code=404)
    return {"key": key, "value": value}


@router.put("/session/{key}")
async def write_value(
    key: str,
    body: SessionValue,
    session: Session = Depends(get_session),
):
    session.set(key, body.value)
    return {"success": True}


@router.delete("/session/{key}")
async def delete_value(key: str, session: Session = Depends(get_session)):
    session.delete(key)
    return {"success": True}
