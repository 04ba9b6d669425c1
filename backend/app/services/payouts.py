from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, InvalidInput
from app.models.booking import Booking, BookingStatus
from app.models.provider import Provider
from app.models.user import Role, User
from app.services import notifications
from app.services.audit import log_event
from app.services.payment_shares import resolve_provider_share

logger = logging.getLogger("telehealth.payouts")


@dataclass
class PayoutLine:
    booking_id: int
    patient_name: str
    slot_date: date
    slot_time: time
    amount: int
    paid_at: datetime | None = None


@dataclass
class ProviderPayoutSummary:
    provider_id: int
    name: str
    total_earned: int = 0
    total_paid: int = 0
    outstanding: int = 0
    completed_bookings: int = 0
    paid_bookings: list[PayoutLine] = field(default_factory=list)
    unpaid_bookings: list[PayoutLine] = field(default_factory=list)

    def add(self, booking: Booking) -> None:
        share = resolve_provider_share(booking.provider_share)
        line = PayoutLine(
            booking_id=booking.id,
            patient_name=booking.patient.display_name if booking.patient else "Unknown",
            slot_date=booking.slot_date,
            slot_time=booking.slot_time,
            amount=share,
            paid_at=booking.paid_at,
        )
        self.total_earned += share
        self.completed_bookings += 1
        if booking.provider_paid:
            self.total_paid += share
            self.paid_bookings.append(line)
        else:
            self.unpaid_bookings.append(line)
        self.outstanding = self.total_earned - self.total_paid


def _completed_bookings(db: Session, provider_id: int | None = None) -> list[Booking]:
    stmt = (
        select(Booking)
        .where(Booking.status == BookingStatus.completed)
        .order_by(Booking.slot_date.asc(), Booking.slot_time.asc())
    )
    if provider_id is not None:
        stmt = stmt.where(Booking.provider_id == provider_id)
    return list(db.scalars(stmt))


def provider_payment_stats(db: Session, provider: Provider) -> ProviderPayoutSummary:
    summary = ProviderPayoutSummary(provider_id=provider.id, name=provider.display_name)
    for booking in _completed_bookings(db, provider.id):
        summary.add(booking)
    return summary


def payout_overview(db: Session) -> list[ProviderPayoutSummary]:
    summaries: dict[int, ProviderPayoutSummary] = {}
    for booking in _completed_bookings(db):
        summary = summaries.get(booking.provider_id)
        if summary is None:
            name = booking.provider.display_name if booking.provider else "Unknown"
            summary = ProviderPayoutSummary(provider_id=booking.provider_id, name=name)
            summaries[booking.provider_id] = summary
        summary.add(booking)
    return [summaries[key] for key in sorted(summaries)]


def mark_providers_paid(
    db: Session,
    booking_ids: list[int],
    *,
    actor: User,
    now: datetime | None = None,
) -> int:
    """Flag completed bookings as paid out. Shares are never recomputed."""
    if actor.role != Role.admin:
        raise Forbidden("Admin access required")
    if not booking_ids:
        raise InvalidInput("Booking IDs array required")

    paid_at = now or datetime.now(timezone.utc)
    stmt = select(Booking).where(
        Booking.id.in_(booking_ids),
        Booking.status == BookingStatus.completed,
        Booking.provider_paid.is_(False),
    )
    totals: dict[int, list[int]] = defaultdict(list)
    modified = 0
    for booking in list(db.scalars(stmt)):
        booking.provider_paid = True
        booking.paid_at = paid_at
        booking.paid_by_user_id = actor.id
        totals[booking.provider.user_id].append(resolve_provider_share(booking.provider_share))
        log_event(
            db,
            actor=actor,
            action="booking.provider_paid",
            entity_type="booking",
            entity_id=str(booking.id),
            after_data={"provider_paid": True, "paid_at": paid_at.isoformat()},
        )
        modified += 1
    db.commit()
    logger.info("Marked %s booking(s) as paid out.", modified)

    for provider_user_id, shares in totals.items():
        notifications.notify_payment_approved(
            db,
            provider_user_id=provider_user_id,
            amount=sum(shares),
            booking_count=len(shares),
        )
    return modified
