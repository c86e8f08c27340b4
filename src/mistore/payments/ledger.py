"""Payment ledger — append-only, deduplicated checkout confirmations."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mistore.common.database import insert_if_absent
from mistore.common.models import utcnow
from mistore.payments.models import PaymentEventModel

logger = logging.getLogger(__name__)


@dataclass
class RecordResult:
    inserted: bool


class PaymentLedger:
    """Ledger of processed Stripe checkout sessions."""

    async def record_payment_if_new(
        self,
        session: AsyncSession,
        session_id: str,
        app_id: Optional[int],
        payer_email: Optional[str] = None,
        amount_total: Optional[int] = None,
        currency: Optional[str] = None,
        event_id: Optional[str] = None,
    ) -> RecordResult:
        """Insert the event unless its session id is already recorded.

        Webhooks arrive at least once; redeliveries (concurrent or later) see
        ``inserted=False`` and write nothing.
        """
        inserted = await insert_if_absent(
            session,
            PaymentEventModel,
            {
                "session_id": session_id,
                "app_id": app_id,
                "payer_email": payer_email,
                "amount_total": amount_total,
                "currency": currency,
                "event_id": event_id,
                "confirmed_at": utcnow(),
            },
            conflict_columns=["session_id"],
        )
        if inserted:
            logger.info("Recorded payment %s for app %s", session_id, app_id)
        else:
            logger.info("Duplicate delivery for payment %s ignored", session_id)
        return RecordResult(inserted=inserted)

    async def find_by_session(
        self, session: AsyncSession, session_id: str
    ) -> Optional[PaymentEventModel]:
        return await session.get(PaymentEventModel, session_id)

    async def has_paid(
        self, session: AsyncSession, session_id: str, app_id: int
    ) -> bool:
        event = await self.find_by_session(session, session_id)
        return event is not None and event.app_id == app_id

    async def list_payments(
        self,
        session: AsyncSession,
        app_id: int | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[PaymentEventModel]:
        query = select(PaymentEventModel)
        if app_id is not None:
            query = query.where(PaymentEventModel.app_id == app_id)
        query = query.order_by(
            PaymentEventModel.confirmed_at.desc(),
            PaymentEventModel.session_id,
        )
        query = query.offset(offset).limit(limit)
        result = await session.execute(query)
        return list(result.scalars().all())
