from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.models.provider import Provider
from app.services.slot_catalog import get_provider
from app.services.time_windows import is_slot_expired, now_in_slot_timezone

logger = logging.getLogger("telehealth.slots")


def _prune(provider: Provider, now: datetime) -> int:
    expired = [
        slot for slot in provider.slots if is_slot_expired(slot.slot_date, slot.end_time, now)
    ]
    for slot in expired:
        provider.slots.remove(slot)
    return len(expired)


def sweep_provider(db: Session, provider_id: int, now: datetime | None = None) -> int:
    """Drop slots whose end has passed; returns how many were removed."""
    provider = get_provider(db, provider_id)
    removed = _prune(provider, now or now_in_slot_timezone())
    if removed:
        db.commit()
        logger.info("Removed %s expired slots for provider %s.", removed, provider_id)
    return removed


def sweep_all(db: Session, now: datetime | None = None, *, apply: bool = True) -> int:
    current = now or now_in_slot_timezone()
    providers = db.scalars(select(Provider).options(selectinload(Provider.slots))).unique()
    total = 0
    for provider in providers:
        total += _prune(provider, current)
    if not apply:
        db.rollback()
        return total
    if total:
        db.commit()
    logger.info("Expired slot sweep removed %s slots.", total)
    return total
