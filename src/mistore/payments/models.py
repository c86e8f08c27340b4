"""SQLAlchemy model for the payment confirmation ledger."""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from mistore.common.models import Base, utcnow


class PaymentEventModel(Base):
    __tablename__ = "payment_events"

    # Stripe checkout session id; the primary key is the dedup constraint.
    session_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    # Weak reference: apps may be deleted while their payments remain.
    app_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    payer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    currency: Mapped[str | None] = mapped_column(String(10), nullable=True)
    event_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    confirmed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
