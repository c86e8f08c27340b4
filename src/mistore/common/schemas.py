"""Shared Pydantic schemas for Mi Store."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "mistore"


class MessageResponse(BaseModel):
    success: bool = True
    message: str = ""
