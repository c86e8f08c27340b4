"""StorefrontService — sequences object storage, catalog and payment writes.

Every multi-step operation runs its steps strictly in order and stops at the
first failure. Nothing is rolled back across systems: an object uploaded
before a failed catalog write stays behind as unreferenced storage.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mistore.catalog.models import AppModel
from mistore.catalog.schemas import AppCreate, AppUpdate
from mistore.catalog.service import CatalogService, Fields
from mistore.common.config import StoreSettings
from mistore.common.exceptions import (
    GatewayError,
    NotFoundError,
    PaymentRequiredError,
    ValidationError,
)
from mistore.common.security import Principal
from mistore.payments.gateway import CHECKOUT_COMPLETED, CheckoutSession, PaymentGateway
from mistore.payments.ledger import PaymentLedger
from mistore.storage.gateway import ObjectStore
from mistore.storage.keys import filename_from_key, generate_object_key

logger = logging.getLogger(__name__)


@dataclass
class Upload:
    """An uploaded file held in memory."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class SignedUrl:
    url: str
    expires_at: datetime


@dataclass
class WebhookOutcome:
    event_type: str
    handled: bool = False
    inserted: bool = False
    session_id: Optional[str] = None
    app_id: Optional[int] = None


def _parse_app_id(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class StorefrontService:
    """Orchestrates uploads, catalog writes, checkout and webhook reconciliation."""

    def __init__(
        self,
        settings: StoreSettings,
        catalog: CatalogService,
        ledger: PaymentLedger,
        object_store: ObjectStore,
        payment_gateway: PaymentGateway,
    ):
        self.settings = settings
        self.catalog = catalog
        self.ledger = ledger
        self.object_store = object_store
        self.payment_gateway = payment_gateway

    # ── Uploads ──

    def _check_upload(self, upload: Upload, kind: str) -> None:
        if not upload.content:
            raise ValidationError(f"{kind.capitalize()} file is empty")
        if len(upload.content) > self.settings.max_upload_bytes:
            raise ValidationError(
                f"{kind.capitalize()} exceeds {self.settings.max_upload_bytes} bytes"
            )
        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        if kind == "image":
            allowed = content_type.startswith("image/")
        else:
            allowed = content_type in self.settings.artifact_content_types
        if not allowed:
            raise ValidationError(f"File type not allowed for {kind}: {content_type or 'unknown'}")

    async def _store(self, upload: Upload, prefix: str) -> str:
        key = generate_object_key(prefix, upload.filename)
        return await self.object_store.put_object(key, upload.content, upload.content_type)

    async def _discard(self, *keys: Optional[str]) -> None:
        """Best-effort object removal; failures are logged, never raised."""
        if not self.settings.delete_objects_on_remove:
            return
        for key in keys:
            if not key:
                continue
            try:
                await self.object_store.delete_object(key)
            except GatewayError:
                logger.warning("Could not delete stale object %s", key, exc_info=True)

    # ── Catalog writes ──

    async def create_app_with_artifacts(
        self,
        session: AsyncSession,
        metadata: Fields,
        artifact: Optional[Upload],
        image: Optional[Upload] = None,
    ) -> AppModel:
        """Upload the artifact (and image), then write the catalog row.

        Input is fully validated before the first upload. An image upload
        failure aborts the whole operation.
        """
        data: AppCreate = self.catalog.validate_fields(metadata, require_artifact=False)
        if artifact is None:
            raise ValidationError("Artifact file is required")
        self._check_upload(artifact, "artifact")
        if image is not None:
            self._check_upload(image, "image")

        artifact_key = await self._store(artifact, self.settings.artifact_prefix)
        image_key = None
        if image is not None:
            image_key = await self._store(image, self.settings.image_prefix)

        app = await self.catalog.create_app(
            session,
            data.model_copy(update={"artifact_key": artifact_key, "image_key": image_key}),
        )
        logger.info("Created app %s (%s)", app.id, app.name)
        return app

    async def update_app_with_artifacts(
        self,
        session: AsyncSession,
        app_id: int,
        changes: Fields,
        artifact: Optional[Upload] = None,
        image: Optional[Upload] = None,
        clear_image: bool = False,
    ) -> AppModel:
        """Apply a partial update, re-uploading only the files supplied."""
        data: AppUpdate = self.catalog.validate_fields(changes, partial=True)
        if artifact is not None:
            self._check_upload(artifact, "artifact")
        if image is not None:
            self._check_upload(image, "image")

        app = await self.catalog.get_app(session, app_id)
        old_artifact, old_image = app.artifact_key, app.image_key

        updates = data.model_dump(exclude_unset=True)
        if artifact is not None:
            updates["artifact_key"] = await self._store(artifact, self.settings.artifact_prefix)
        if image is not None:
            updates["image_key"] = await self._store(image, self.settings.image_prefix)
        elif clear_image:
            updates["image_key"] = None

        app = await self.catalog.update_app(session, app_id, updates)
        await session.commit()

        stale = [
            old for old, new in ((old_artifact, app.artifact_key), (old_image, app.image_key))
            if old and old != new
        ]
        await self._discard(*stale)
        logger.info("Updated app %s fields=%s", app.id, sorted(updates))
        return app

    async def delete_app(self, session: AsyncSession, app_id: int) -> None:
        """Delete the catalog row; stored objects are removed best-effort."""
        app = await self.catalog.delete_app(session, app_id)
        await session.commit()
        await self._discard(app.artifact_key, app.image_key)
        logger.info("Deleted app %s", app_id)

    # ── Payments ──

    async def initiate_checkout(self, session: AsyncSession, app_id: int) -> CheckoutSession:
        """Open a Stripe Checkout session for the app and return it (url, id)."""
        app = await self.catalog.get_app(session, app_id)
        if not app.is_paid:
            raise ValidationError("App is free; no checkout needed")

        base = self.settings.public_base_url.rstrip("/")
        checkout = await self.payment_gateway.create_checkout_session(
            app_id=app.id,
            name=app.name,
            amount=app.price,
            currency=self.settings.currency,
            success_url=f"{base}/success?session_id={{CHECKOUT_SESSION_ID}}&app_id={app.id}",
            cancel_url=f"{base}/",
        )
        logger.info("Checkout session %s opened for app %s", checkout.id, app.id)
        return checkout

    async def reconcile_webhook(
        self,
        session: AsyncSession,
        raw_payload: bytes,
        signature_header: str,
    ) -> WebhookOutcome:
        """Verify a Stripe callback and record completed checkouts once.

        Raises SignatureError before anything is written when the payload is
        not authentic. Event types other than checkout completion are ignored.
        """
        event = self.payment_gateway.verify_webhook(raw_payload, signature_header)
        event_type = str(event.get("type", ""))
        if event_type != CHECKOUT_COMPLETED:
            logger.debug("Ignoring Stripe event type: %s", event_type)
            return WebhookOutcome(event_type=event_type)

        obj = (event.get("data") or {}).get("object") or {}
        session_id = obj.get("id")
        if not session_id:
            logger.warning("Checkout event %s has no session id", event.get("id"))
            return WebhookOutcome(event_type=event_type)

        metadata = obj.get("metadata") or {}
        app_id = _parse_app_id(metadata.get("app_id", obj.get("client_reference_id")))
        if app_id is None:
            logger.warning("Checkout session %s has no usable app_id", session_id)
        customer = obj.get("customer_details") or {}

        result = await self.ledger.record_payment_if_new(
            session,
            session_id=session_id,
            app_id=app_id,
            payer_email=customer.get("email") or obj.get("customer_email"),
            amount_total=obj.get("amount_total"),
            currency=obj.get("currency"),
            event_id=event.get("id"),
        )
        return WebhookOutcome(
            event_type=event_type,
            handled=True,
            inserted=result.inserted,
            session_id=session_id,
            app_id=app_id,
        )

    # ── Downloads ──

    async def check_download_access(
        self,
        session: AsyncSession,
        app: AppModel,
        checkout_session_id: Optional[str] = None,
        principal: Optional[Principal] = None,
    ) -> None:
        """Allow free apps, administrators, and confirmed purchases of this app."""
        if not app.is_paid:
            return
        if principal is not None and principal.is_admin:
            return
        if checkout_session_id and await self.ledger.has_paid(
            session, checkout_session_id, app.id
        ):
            return
        raise PaymentRequiredError(f"App {app.id} requires a confirmed payment")

    async def _sign(self, key: str, ttl: int, filename: Optional[str] = None) -> SignedUrl:
        issued = datetime.now(timezone.utc)
        url = await self.object_store.presign_get(key, ttl, filename=filename)
        return SignedUrl(url=url, expires_at=issued + timedelta(seconds=ttl))

    async def get_download_link(self, session: AsyncSession, app_id: int) -> SignedUrl:
        app = await self.catalog.get_app(session, app_id)
        return await self._sign(
            app.artifact_key,
            self.settings.download_ttl,
            filename=filename_from_key(app.artifact_key),
        )

    async def get_image_link(self, session: AsyncSession, app_id: int) -> SignedUrl:
        app = await self.catalog.get_app(session, app_id)
        if not app.image_key:
            raise NotFoundError(f"App {app_id} has no image")
        return await self._sign(app.image_key, self.settings.image_url_ttl)
