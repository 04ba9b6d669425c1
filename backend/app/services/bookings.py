from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, InvalidInput, InvalidState, NotFound, SlotUnavailable
from app.models.booking import (
    ACTIVE_STATUSES,
    Booking,
    BookingStatus,
    ServiceType,
    TreatmentStatus,
)
from app.models.provider import ProviderSlot
from app.models.user import Role, User
from app.schemas.booking import BookingCreate
from app.services import notifications
from app.services.audit import log_event, snapshot_model
from app.services.payment_shares import compute_payment_share
from app.services.slot_catalog import find_slot, get_provider, get_provider_for_user
from app.services.time_windows import is_slot_expired, parse_time_of_day

logger = logging.getLogger("telehealth.bookings")

ACTIVE_SLOT_INDEX = "uq_bookings_active_slot"
SLOT_TAKEN = "This slot is already booked. Please select another slot."


def _parse_slot_time(value: str | time) -> time:
    try:
        return parse_time_of_day(value)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc


def _parse_service_type(value: str) -> ServiceType:
    try:
        return ServiceType(value)
    except ValueError as exc:
        raise InvalidInput("Invalid service type") from exc


def _is_active_slot_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return ACTIVE_SLOT_INDEX in message or (
        "bookings.provider_id" in message and "bookings.slot_time" in message
    )


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFound("Booking not found")
    return booking


def _is_owning_provider(booking: Booking, actor: User) -> bool:
    return actor.is_provider and booking.provider is not None and booking.provider.user_id == actor.id


def _require_owning_provider(booking: Booking, actor: User, verb: str = "update") -> None:
    if not _is_owning_provider(booking, actor):
        raise Forbidden(f"Not authorized to {verb} this booking")


def claim_slot(
    db: Session,
    *,
    provider_id: int,
    slot_date: date,
    slot_time: time,
    now: datetime | None = None,
    exclude_booking_id: int | None = None,
) -> ProviderSlot | None:
    """Check that ``(provider, date, time)`` can be taken by a booking.

    The ledger decides: any other pending or confirmed booking on the key
    makes the slot unavailable. A catalog entry is optional, but when present
    its window must not have ended. The partial unique index on active
    bookings backs this check up at flush time.
    """
    stmt = select(Booking.id).where(
        Booking.provider_id == provider_id,
        Booking.slot_date == slot_date,
        Booking.slot_time == slot_time,
        Booking.status.in_(ACTIVE_STATUSES),
    )
    if exclude_booking_id is not None:
        stmt = stmt.where(Booking.id != exclude_booking_id)
    if db.scalar(stmt.limit(1)) is not None:
        raise SlotUnavailable(SLOT_TAKEN)

    slot = find_slot(db, provider_id, slot_date, slot_time)
    if slot and is_slot_expired(slot.slot_date, slot.end_time, now):
        raise SlotUnavailable("This slot has expired. Please select another available slot.")
    return slot


def _flush_claim(db: Session) -> None:
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        if _is_active_slot_violation(exc):
            raise SlotUnavailable(SLOT_TAKEN) from exc
        raise


def _validate_patient_details(payload: BookingCreate) -> None:
    details = payload.patient_details
    if details is None:
        raise InvalidInput("Service type and patient details are required")
    prescription = (details.prescription_url or "").strip()
    if not details.age or details.age < 0 or details.sex is None or not prescription:
        raise InvalidInput("Age, sex, and prescription are required")


def create_booking(
    db: Session,
    *,
    actor: User,
    payload: BookingCreate,
    now: datetime | None = None,
    request_id: str | None = None,
    ip_address: str | None = None,
) -> Booking:
    if actor.role != Role.patient:
        raise Forbidden("Only patients can create bookings")
    service_type = _parse_service_type(payload.service_type)
    _validate_patient_details(payload)
    slot_time = _parse_slot_time(payload.slot_time)
    provider = get_provider(db, payload.provider_id)

    claim_slot(
        db,
        provider_id=provider.id,
        slot_date=payload.slot_date,
        slot_time=slot_time,
        now=now,
    )
    share = compute_payment_share(service_type)
    details = payload.patient_details
    booking = Booking(
        patient_user_id=actor.id,
        provider_id=provider.id,
        slot_date=payload.slot_date,
        slot_time=slot_time,
        service_type=service_type,
        status=BookingStatus.confirmed,
        treatment_status=TreatmentStatus.untreated,
        payment_id=payload.payment_id,
        payment_amount=share.payment_amount,
        provider_share=share.provider_share,
        patient_age=details.age,
        patient_sex=details.sex,
        prescription_url=details.prescription_url.strip(),
        additional_notes=details.additional_notes or "",
        test_result_urls=[],
    )
    db.add(booking)
    _flush_claim(db)
    log_event(
        db,
        actor=actor,
        action="booking.created",
        entity_type="booking",
        entity_id=str(booking.id),
        after_obj=booking,
        request_id=request_id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(booking)
    logger.info(
        "Booking %s confirmed for provider %s on %s %s.",
        booking.id,
        provider.id,
        booking.slot_date,
        booking.slot_time,
    )
    notifications.notify_booking_confirmed(db, booking)
    return booking


def cancel_booking(
    db: Session,
    booking_id: int,
    *,
    actor: User,
    request_id: str | None = None,
    ip_address: str | None = None,
) -> Booking:
    booking = get_booking(db, booking_id)
    is_patient = booking.patient_user_id == actor.id
    if not is_patient and not _is_owning_provider(booking, actor):
        raise Forbidden("Not authorized to cancel this booking")
    if booking.status == BookingStatus.cancelled:
        raise InvalidState("Booking is already cancelled")
    if booking.status == BookingStatus.completed:
        raise InvalidState("Cannot cancel a completed booking")

    before_data = snapshot_model(booking)
    booking.status = BookingStatus.cancelled
    booking.cancelled_at = datetime.now(timezone.utc)
    booking.cancelled_by_user_id = actor.id
    log_event(
        db,
        actor=actor,
        action="booking.cancelled",
        entity_type="booking",
        entity_id=str(booking.id),
        before_data=before_data,
        after_obj=booking,
        request_id=request_id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(booking)
    logger.info("Booking %s cancelled by user %s.", booking.id, actor.id)
    return booking


def reschedule_booking(
    db: Session,
    booking_id: int,
    *,
    actor: User,
    new_date: date,
    new_time: str | time,
    now: datetime | None = None,
    request_id: str | None = None,
    ip_address: str | None = None,
) -> Booking:
    booking = get_booking(db, booking_id)
    _require_owning_provider(booking, actor, "reschedule")
    slot_time = _parse_slot_time(new_time)
    if not booking.is_active:
        raise InvalidState("Only pending or confirmed bookings can be rescheduled")
    if (booking.slot_date, booking.slot_time) == (new_date, slot_time):
        return booking

    claim_slot(
        db,
        provider_id=booking.provider_id,
        slot_date=new_date,
        slot_time=slot_time,
        now=now,
        exclude_booking_id=booking.id,
    )
    before_data = snapshot_model(booking)
    booking.slot_date = new_date
    booking.slot_time = slot_time
    _flush_claim(db)
    log_event(
        db,
        actor=actor,
        action="booking.rescheduled",
        entity_type="booking",
        entity_id=str(booking.id),
        before_data=before_data,
        after_obj=booking,
        request_id=request_id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(booking)
    logger.info("Booking %s rescheduled to %s %s.", booking.id, new_date, slot_time)
    return booking


def set_treatment_status(
    db: Session,
    booking_id: int,
    *,
    actor: User,
    treatment_status: str,
    request_id: str | None = None,
    ip_address: str | None = None,
) -> Booking:
    booking = get_booking(db, booking_id)
    _require_owning_provider(booking, actor)
    try:
        target = TreatmentStatus(treatment_status)
    except ValueError as exc:
        raise InvalidInput("Invalid treatment status") from exc
    if booking.status == BookingStatus.cancelled:
        raise InvalidState("Cannot update treatment on a cancelled booking")
    if booking.treatment_status == TreatmentStatus.treated:
        if target == TreatmentStatus.untreated:
            raise InvalidState("Booking is already marked as treated")
        return booking
    if target == booking.treatment_status:
        return booking

    before_data = snapshot_model(booking)
    booking.treatment_status = target
    booking.status = BookingStatus.completed
    log_event(
        db,
        actor=actor,
        action="booking.treated",
        entity_type="booking",
        entity_id=str(booking.id),
        before_data=before_data,
        after_obj=booking,
        request_id=request_id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(booking)
    return booking


def complete_with_report(
    db: Session,
    booking_id: int,
    *,
    actor: User,
    report_url: str,
    request_id: str | None = None,
    ip_address: str | None = None,
) -> Booking:
    booking = get_booking(db, booking_id)
    _require_owning_provider(booking, actor)
    report_url = (report_url or "").strip()
    if not report_url:
        raise InvalidInput("Report URL is required")
    if booking.status == BookingStatus.cancelled:
        raise InvalidState("Cannot file a report on a cancelled booking")

    before_data = snapshot_model(booking)
    booking.counselling_report_url = report_url
    booking.status = BookingStatus.completed
    log_event(
        db,
        actor=actor,
        action="booking.report_filed",
        entity_type="booking",
        entity_id=str(booking.id),
        before_data=before_data,
        after_obj=booking,
        request_id=request_id,
        ip_address=ip_address,
    )
    db.commit()
    db.refresh(booking)
    return booking


def add_test_result(
    db: Session,
    booking_id: int,
    *,
    actor: User,
    test_result_url: str,
) -> Booking:
    booking = get_booking(db, booking_id)
    _require_owning_provider(booking, actor)
    test_result_url = (test_result_url or "").strip()
    if not test_result_url:
        raise InvalidInput("Test result URL is required")

    booking.test_result_urls = [*(booking.test_result_urls or []), test_result_url]
    db.commit()
    db.refresh(booking)
    notifications.notify_test_result_uploaded(db, booking)
    return booking


def set_meeting_link(
    db: Session,
    booking_id: int,
    *,
    actor: User,
    meet_link: str,
) -> Booking:
    meet_link = (meet_link or "").strip()
    if not meet_link:
        raise InvalidInput("Meeting link is required")
    booking = get_booking(db, booking_id)
    _require_owning_provider(booking, actor)
    if booking.status != BookingStatus.confirmed:
        raise InvalidState("Meeting link can only be set on a confirmed booking")

    booking.meet_link = meet_link
    db.commit()
    db.refresh(booking)
    notifications.notify_meeting_link_added(db, booking)
    return booking


def submit_review(
    db: Session,
    booking_id: int,
    *,
    actor: User,
    rating: int,
    feedback: str | None = None,
) -> Booking:
    if rating is None or not 1 <= rating <= 5:
        raise InvalidInput("Rating must be between 1 and 5")
    booking = get_booking(db, booking_id)
    if booking.patient_user_id != actor.id:
        raise Forbidden("Not authorized to review this booking")
    if booking.status != BookingStatus.completed:
        raise InvalidState("Can only review completed bookings")
    if booking.has_review:
        raise InvalidState("You have already reviewed this booking")

    booking.review_rating = rating
    booking.review_feedback = (feedback or "").strip()
    booking.review_submitted_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(booking)
    notifications.notify_review_submitted(db, booking)
    return booking


def list_bookings_for(db: Session, actor: User) -> list[Booking]:
    stmt = select(Booking).order_by(Booking.created_at.desc(), Booking.id.desc())
    if actor.role == Role.admin:
        return list(db.scalars(stmt))
    if actor.is_provider:
        provider = get_provider_for_user(db, actor)
        stmt = stmt.where(Booking.provider_id == provider.id)
    else:
        stmt = stmt.where(Booking.patient_user_id == actor.id)
    return list(db.scalars(stmt))


def get_booking_for(db: Session, booking_id: int, actor: User) -> Booking:
    booking = get_booking(db, booking_id)
    if actor.role == Role.admin:
        return booking
    if booking.patient_user_id == actor.id or _is_owning_provider(booking, actor):
        return booking
    raise Forbidden("Not authorized to view this booking")


def provider_reviews(db: Session, provider_id: int) -> tuple[list[Booking], float]:
    get_provider(db, provider_id)
    stmt = (
        select(Booking)
        .where(
            Booking.provider_id == provider_id,
            Booking.status == BookingStatus.completed,
            Booking.review_rating.is_not(None),
        )
        .order_by(Booking.review_submitted_at.desc())
    )
    reviewed = list(db.scalars(stmt))
    if not reviewed:
        return reviewed, 0.0
    average = sum(item.review_rating for item in reviewed) / len(reviewed)
    return reviewed, round(average, 1)
