"""
Counter store endpoints.

Every response uses the {"success": ..., "data": ...} envelope. Errors are
mapped to status codes by the handlers registered in web.app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from ..api_models import CounterUpdate, IncrementRequest
from ..state import state

router = APIRouter(prefix="/counter", tags=["counter"])


@router.get("")
def get_counter():
    record = state.get_database().read()
    return {"success": True, "data": record.to_dict()}


@router.put("")
def put_counter(body: CounterUpdate):
    record = state.get_database().overwrite(body.entrances, body.exits)
    return {"success": True, "data": record.to_dict()}


@router.post("/increment")
def increment_counter(body: IncrementRequest):
    record = state.get_database().increment(body.type)
    return {"success": True, "data": record.to_dict()}


@router.post("/reset")
def reset_counter():
    record = state.get_database().reset()
    return {"success": True, "message": "Counter reset", "data": record.to_dict()}


@router.get("/history")
def counter_history(
    start_ts: Optional[float] = Query(None, alias="from", description="Unix seconds, inclusive"),
    end_ts: Optional[float] = Query(None, alias="to", description="Unix seconds, inclusive"),
    limit: Optional[int] = Query(None, ge=0),
):
    events = state.get_database().query_history(start_ts=start_ts, end_ts=end_ts, limit=limit)
    return {"success": True, "data": [e.to_dict() for e in events]}


@router.get("/stats")
def counter_stats(
    period: str = Query("hour", description="minute|hour|day|week|month"),
    start_ts: Optional[float] = Query(None, alias="from"),
    end_ts: Optional[float] = Query(None, alias="to"),
):
    buckets = state.get_database().query_stats(period, start_ts=start_ts, end_ts=end_ts)
    return {"success": True, "data": [b.to_dict() for b in buckets]}
