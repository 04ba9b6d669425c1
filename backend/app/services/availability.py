from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.booking import ACTIVE_STATUSES, Booking
from app.services.slot_catalog import get_provider
from app.services.slot_expiry import sweep_provider


@dataclass(frozen=True)
class SlotAvailability:
    slot_date: date
    start_time: time
    end_time: time
    is_booked: bool


def active_booking_keys(db: Session, provider_id: int) -> set[tuple[date, time]]:
    rows = db.execute(
        select(Booking.slot_date, Booking.slot_time).where(
            Booking.provider_id == provider_id,
            Booking.status.in_(ACTIVE_STATUSES),
        )
    )
    return {(row.slot_date, row.slot_time) for row in rows}


def get_availability(
    db: Session, provider_id: int, now: datetime | None = None
) -> list[SlotAvailability]:
    """Offered slots for a provider, in catalog order, marked against the ledger."""
    provider = get_provider(db, provider_id)
    sweep_provider(db, provider.id, now=now)
    booked = active_booking_keys(db, provider.id)
    return [
        SlotAvailability(
            slot_date=slot.slot_date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_booked=slot.key in booked,
        )
        for slot in provider.slots
    ]
