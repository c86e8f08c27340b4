"""Pydantic schemas for catalog records."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AppCreate(BaseModel):
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: int = 0
    artifact_key: Optional[str] = None
    image_key: Optional[str] = None


class AppUpdate(BaseModel):
    """Partial update. Only fields present in ``model_fields_set`` are applied.

    An explicit ``None`` clears description, category or image_key; a field
    that was never supplied keeps its stored value.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[int] = None
    artifact_key: Optional[str] = None
    image_key: Optional[str] = None


class AppResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    price: int
    is_paid: bool
    rating: Optional[float] = None
    artifact_key: str
    image_key: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
