from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, InvalidInput, NotFound
from app.models.provider import Provider, ProviderKind, ProviderSlot
from app.models.user import User
from app.services.time_windows import parse_time_of_day

logger = logging.getLogger("telehealth.slots")


@dataclass(frozen=True)
class SlotWindow:
    slot_date: date
    start_time: time
    end_time: time

    @property
    def key(self) -> tuple[date, time]:
        return self.slot_date, self.start_time


def get_provider(db: Session, provider_id: int) -> Provider:
    provider = db.get(Provider, provider_id)
    if not provider:
        raise NotFound("Provider not found")
    return provider


def get_provider_for_user(db: Session, user: User) -> Provider:
    if not user.is_provider:
        raise Forbidden("Only providers can manage slots")
    provider = db.scalar(select(Provider).where(Provider.user_id == user.id))
    if not provider:
        raise NotFound("Provider profile not found")
    return provider


def list_providers(db: Session, kind: ProviderKind | None = None) -> list[Provider]:
    stmt = select(Provider).order_by(Provider.id.asc())
    if kind is not None:
        stmt = stmt.where(Provider.kind == kind)
    return list(db.scalars(stmt))


def build_window(slot_date: date, start: str | time, end: str | time) -> SlotWindow:
    try:
        start_time = parse_time_of_day(start)
        end_time = parse_time_of_day(end)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc
    if end_time <= start_time:
        raise InvalidInput("Slot end time must be after start time.")
    return SlotWindow(slot_date=slot_date, start_time=start_time, end_time=end_time)


def _ensure_unique(windows: list[SlotWindow]) -> None:
    seen: set[tuple[date, time]] = set()
    for window in windows:
        if window.key in seen:
            raise InvalidInput(
                f"Duplicate slot {window.slot_date.isoformat()} {window.start_time.strftime('%H:%M')}"
            )
        seen.add(window.key)


def find_slot(
    db: Session, provider_id: int, slot_date: date, start_time: time
) -> ProviderSlot | None:
    return db.scalar(
        select(ProviderSlot).where(
            ProviderSlot.provider_id == provider_id,
            ProviderSlot.slot_date == slot_date,
            ProviderSlot.start_time == start_time,
        )
    )


def replace_slots(db: Session, provider: Provider, windows: list[SlotWindow]) -> Provider:
    """Replace the provider's whole catalog, keeping the given order."""
    _ensure_unique(windows)
    previous = len(provider.slots)
    provider.slots.clear()
    db.flush()
    for window in windows:
        provider.slots.append(
            ProviderSlot(
                slot_date=window.slot_date,
                start_time=window.start_time,
                end_time=window.end_time,
            )
        )
    db.commit()
    db.refresh(provider)
    logger.info(
        "Provider %s catalog replaced (%s -> %s slots).", provider.id, previous, len(windows)
    )
    return provider


def add_slot(db: Session, provider: Provider, window: SlotWindow) -> ProviderSlot:
    if find_slot(db, provider.id, window.slot_date, window.start_time):
        raise InvalidInput(
            f"Duplicate slot {window.slot_date.isoformat()} {window.start_time.strftime('%H:%M')}"
        )
    slot = ProviderSlot(
        slot_date=window.slot_date,
        start_time=window.start_time,
        end_time=window.end_time,
    )
    provider.slots.append(slot)
    db.commit()
    db.refresh(slot)
    return slot
