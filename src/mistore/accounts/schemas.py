"""Pydantic schemas for login endpoints."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class PrincipalResponse(BaseModel):
    success: bool = True
    user_id: int
    username: str
    role: str
