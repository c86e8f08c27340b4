"""Pydantic schemas for storefront endpoints."""

from datetime import datetime

from pydantic import BaseModel


class DownloadResponse(BaseModel):
    url: str
    expires_at: datetime
