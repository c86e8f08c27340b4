"""Payment gateway — Stripe Checkout sessions and webhook verification."""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from mistore.common.config import StoreSettings
from mistore.common.exceptions import GatewayError, SignatureError

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


@dataclass
class CheckoutSession:
    id: str
    url: str


class PaymentGateway(Protocol):
    async def create_checkout_session(
        self,
        *,
        app_id: int,
        name: str,
        amount: int,
        currency: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession: ...

    def verify_webhook(self, payload: bytes, signature_header: str) -> dict[str, Any]: ...


class StripeGateway:
    """stripe-python wrapper. The API key travels with each request."""

    def __init__(self, settings: StoreSettings):
        self.settings = settings

    async def create_checkout_session(
        self,
        *,
        app_id: int,
        name: str,
        amount: int,
        currency: str,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        import stripe

        if not self.settings.stripe_secret_key:
            raise GatewayError("Stripe not configured")

        try:
            session = await asyncio.wait_for(
                asyncio.to_thread(
                    stripe.checkout.Session.create,
                    api_key=self.settings.stripe_secret_key,
                    mode="payment",
                    line_items=[{
                        "price_data": {
                            "currency": currency,
                            "product_data": {"name": name},
                            "unit_amount": amount,
                        },
                        "quantity": 1,
                    }],
                    success_url=success_url,
                    cancel_url=cancel_url,
                    client_reference_id=str(app_id),
                    metadata={"app_id": str(app_id)},
                ),
                timeout=self.settings.gateway_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error("Stripe session creation timed out for app %s", app_id)
            raise GatewayError("Stripe session creation timed out") from e
        except stripe.StripeError as e:
            logger.error("Stripe session creation failed: %s", e)
            raise GatewayError("Stripe session creation failed") from e

        return CheckoutSession(id=session.id, url=session.url)

    def verify_webhook(self, payload: bytes, signature_header: str) -> dict[str, Any]:
        """Check the Stripe-Signature header and decode the event body.

        Stripe signs ``<timestamp>.<body>`` with HMAC-SHA256; the header has the
        form ``t=<timestamp>,v1=<signature>``.
        """
        import stripe

        secret = self.settings.stripe_webhook_secret
        if not secret:
            raise SignatureError("Webhook signing secret not configured")
        if not signature_header:
            raise SignatureError("Missing Stripe-Signature header")

        try:
            text = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SignatureError("Webhook payload is not UTF-8") from e

        try:
            stripe.WebhookSignature.verify_header(
                text,
                signature_header,
                secret,
                self.settings.stripe_webhook_tolerance,
            )
        except stripe.SignatureVerificationError as e:
            raise SignatureError("Invalid webhook signature") from e

        try:
            event = json.loads(text)
        except json.JSONDecodeError as e:
            raise SignatureError("Webhook payload is not valid JSON") from e
        if not isinstance(event, dict):
            raise SignatureError("Webhook payload is not an event object")
        return event
