"""In-app notifications for booking events.

Every ``notify_*`` function is best effort: it runs after the booking change
has been committed, logs its own failures and never raises, so a broken
notification can not undo or block the mutation that triggered it.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.settings import settings
from app.models.booking import Booking
from app.models.notification import Notification, NotificationType
from app.models.user import Role, User
from app.services.payment_shares import SERVICE_DESCRIPTIONS
from app.services.time_windows import format_time_of_day

logger = logging.getLogger("telehealth.notifications")


def _admin_ids(db: Session) -> list[int]:
    return list(
        db.scalars(select(User.id).where(User.role == Role.admin, User.is_active.is_(True)))
    )


def _when(booking: Booking) -> str:
    return f"{booking.slot_date.strftime('%d %b %Y')} at {format_time_of_day(booking.slot_time)}"


def _add(
    db: Session,
    *,
    user_ids: Iterable[int],
    type: NotificationType,
    title: str,
    message: str,
    booking_id: int | None = None,
) -> int:
    count = 0
    for user_id in user_ids:
        db.add(
            Notification(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                booking_id=booking_id,
            )
        )
        count += 1
    return count


def _dispatch(db: Session, event: str, build) -> None:
    try:
        created = build()
        db.commit()
        logger.info("Dispatched %s notifications (%s).", event, created)
    except Exception:
        db.rollback()
        logger.exception("Failed to dispatch %s notifications", event)


def notify_booking_confirmed(db: Session, booking: Booking) -> None:
    def build() -> int:
        patient_name = booking.patient.display_name if booking.patient else "Patient"
        provider_name = booking.provider.display_name if booking.provider else "Provider"
        when = _when(booking)
        created = _add(
            db,
            user_ids=[booking.patient_user_id],
            type=NotificationType.booking_confirmed,
            title="Booking Confirmed",
            message=(
                f"Your {SERVICE_DESCRIPTIONS[booking.service_type]} booking with "
                f"{provider_name} on {when} has been confirmed."
            ),
            booking_id=booking.id,
        )
        created += _add(
            db,
            user_ids=[booking.provider.user_id],
            type=NotificationType.new_booking,
            title="New Booking Received",
            message=f"You have a new booking from {patient_name} on {when}.",
            booking_id=booking.id,
        )
        if settings.notify_admins_on_booking:
            created += _add(
                db,
                user_ids=_admin_ids(db),
                type=NotificationType.new_booking,
                title="New Booking Created",
                message=f"{patient_name} booked an appointment with {provider_name} on {when}.",
                booking_id=booking.id,
            )
        return created

    _dispatch(db, "booking_confirmed", build)


def notify_meeting_link_added(db: Session, booking: Booking) -> None:
    def build() -> int:
        provider_name = booking.provider.display_name
        when = _when(booking)
        created = _add(
            db,
            user_ids=[booking.patient_user_id],
            type=NotificationType.meeting_link_added,
            title="Meeting Link Available",
            message=f"{provider_name} has added the meeting link for your appointment on {when}.",
            booking_id=booking.id,
        )
        created += _add(
            db,
            user_ids=_admin_ids(db),
            type=NotificationType.meeting_link_added,
            title="Meeting Link Added",
            message=f"{provider_name} has added a meeting link for the appointment on {when}.",
            booking_id=booking.id,
        )
        return created

    _dispatch(db, "meeting_link_added", build)


def notify_test_result_uploaded(db: Session, booking: Booking) -> None:
    def build() -> int:
        provider_name = booking.provider.display_name
        patient_name = booking.patient.display_name if booking.patient else "patient"
        created = _add(
            db,
            user_ids=[booking.patient_user_id],
            type=NotificationType.test_result_uploaded,
            title="Test Result Uploaded",
            message=f"{provider_name} has uploaded your test result. You can view it in your dashboard.",
            booking_id=booking.id,
        )
        created += _add(
            db,
            user_ids=_admin_ids(db),
            type=NotificationType.test_result_uploaded,
            title="Test Result Uploaded",
            message=f"{provider_name} has uploaded test results for {patient_name}.",
            booking_id=booking.id,
        )
        return created

    _dispatch(db, "test_result_uploaded", build)


def notify_payment_approved(
    db: Session, *, provider_user_id: int, amount: int, booking_count: int
) -> None:
    def build() -> int:
        return _add(
            db,
            user_ids=[provider_user_id],
            type=NotificationType.payment_approved,
            title="Payment Approved",
            message=(
                f"Your payment of ₹{amount} for {booking_count} session(s) "
                "has been approved by admin."
            ),
        )

    _dispatch(db, "payment_approved", build)


def notify_review_submitted(db: Session, booking: Booking) -> None:
    def build() -> int:
        patient_name = booking.patient.display_name if booking.patient else "Patient"
        message = f"{patient_name} rated your session {booking.review_rating}/5."
        if booking.review_feedback:
            message += f' "{booking.review_feedback}"'
        return _add(
            db,
            user_ids=[booking.provider.user_id],
            type=NotificationType.review_submitted,
            title="New Review",
            message=message,
            booking_id=booking.id,
        )

    _dispatch(db, "review_submitted", build)
