"""
Pydantic schemas for the link storage API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class CreateLinkResponse(BaseModel):
    id: str


class ErrorResponse(BaseModel):
    error: str


class PingResponse(BaseModel):
    status: Literal["ok"] = "ok"
    timestamp: int
