from __future__ import annotations

from pydantic import BaseModel, Field


class CounterUpdate(BaseModel):
    entrances: int = Field(..., ge=0, description="Absolute number of entrances")
    exits: int = Field(..., ge=0, description="Absolute number of exits")


class IncrementRequest(BaseModel):
    type: str = Field(..., description="'entrance' or 'exit'")


class ModeUpdate(BaseModel):
    mode: str = Field(..., description="bbox|skeleton|torso")

