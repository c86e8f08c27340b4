"""Pydantic schemas for review endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    rating: int
    comment: str = Field("", max_length=2000)
    username: Optional[str] = Field(None, max_length=100)


class ReviewResponse(BaseModel):
    id: int
    app_id: int
    username: str
    rating: int
    comment: str
    created_at: datetime

    model_config = {"from_attributes": True}


class RatingSummary(BaseModel):
    app_id: int
    average_rating: float
    total_ratings: int
