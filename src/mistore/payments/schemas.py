"""Pydantic schemas for checkout and payment endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    app_id: int = Field(..., alias="appId")


class CheckoutResponse(BaseModel):
    url: str
    session_id: str


class WebhookAck(BaseModel):
    received: bool = True


class PaymentEventResponse(BaseModel):
    session_id: str
    app_id: Optional[int] = None
    payer_email: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    confirmed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentStatusResponse(BaseModel):
    """Public view of a confirmed purchase; payer details stay admin-only."""

    session_id: str
    app_id: Optional[int] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    confirmed_at: datetime

    model_config = ConfigDict(from_attributes=True)
