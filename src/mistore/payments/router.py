"""Checkout, Stripe webhook and payment lookup endpoints."""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from mistore.common.config import get_settings
from mistore.common.exceptions import (
    AppNotFoundError,
    GatewayError,
    SignatureError,
    ValidationError,
)
from mistore.common.security import require_admin
from mistore.payments.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentEventResponse,
    PaymentStatusResponse,
    WebhookAck,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_service():
    from mistore.deps import get_storefront_service
    return get_storefront_service()


def _get_db():
    from mistore.deps import get_db
    return get_db()


@router.post("/api/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout_session(body: CheckoutRequest):
    """Create a Stripe Checkout session for one app."""
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            checkout = await svc.initiate_checkout(session, body.app_id)
    except AppNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except GatewayError:
        raise HTTPException(status_code=500, detail="Payment service unavailable")
    return CheckoutResponse(url=checkout.url, session_id=checkout.id)


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header("", alias="Stripe-Signature"),
):
    """Handle Stripe callbacks. Forged payloads are rejected with 400."""
    body = await request.body()
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            outcome = await svc.reconcile_webhook(session, body, stripe_signature)
    except SignatureError as e:
        logger.warning("Rejected Stripe webhook: %s", e.message)
        raise HTTPException(status_code=400, detail=e.message)
    except Exception:
        # Signature was valid; the ledger write failed.
        logger.exception("Failed to record verified Stripe webhook")
        if get_settings().webhook_ack_on_error:
            return WebhookAck()
        raise HTTPException(status_code=500, detail="Webhook processing failed")

    if outcome.handled:
        logger.info(
            "Stripe %s for session %s (new=%s)",
            outcome.event_type, outcome.session_id, outcome.inserted,
        )
    return WebhookAck()


@router.get("/api/payments/{session_id}", response_model=PaymentStatusResponse)
async def get_payment(session_id: str):
    """Look up a confirmed purchase, e.g. from the checkout success page."""
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        event = await svc.ledger.find_by_session(session, session_id)
        if event is None:
            raise HTTPException(status_code=404, detail="Payment not found")
        return PaymentStatusResponse.model_validate(event)


@router.get(
    "/api/admin/payments",
    response_model=list[PaymentEventResponse],
    dependencies=[Depends(require_admin)],
)
async def list_payments(
    app_id: int | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        events = await svc.ledger.list_payments(
            session, app_id=app_id, limit=limit, offset=offset,
        )
        return [PaymentEventResponse.model_validate(e) for e in events]
