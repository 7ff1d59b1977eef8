"""
Live counting session endpoints.

Only meaningful when this process runs the camera pipeline; otherwise they
answer 404.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..api_models import ModeUpdate
from ..state import state

router = APIRouter(prefix="/session", tags=["session"])


def _no_session() -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": "No counting session is running"},
        status_code=404,
    )


@router.get("")
def get_session():
    if state.session is None:
        return _no_session()
    return {"success": True, "data": state.session.snapshot()}


@router.put("/mode")
def set_mode(body: ModeUpdate):
    if state.session is None:
        return _no_session()
    mode = state.session.set_mode(body.mode)
    return {"success": True, "data": {"mode": mode.value}}


@router.post("/reset")
def reset_session():
    if state.session is None:
        return _no_session()
    store_ok = state.session.reset()
    return {
        "success": True,
        "message": "Session reset" if store_ok else "Session reset locally; counter store unavailable",
        "data": state.session.snapshot(),
    }
