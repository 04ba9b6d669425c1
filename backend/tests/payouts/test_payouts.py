from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select

from app.core.errors import Forbidden, InvalidInput
from app.models.booking import Booking
from app.models.notification import Notification, NotificationType
from app.services import bookings as booking_service
from app.services.payouts import mark_providers_paid, payout_overview, provider_payment_stats

IST = ZoneInfo("Asia/Kolkata")
DAY = date(2025, 1, 10)
MORNING = datetime(2025, 1, 10, 8, 0, tzinfo=IST)
PAID_AT = datetime(2025, 1, 31, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sessions(db, patient, other_patient, pharmacist_user, provider, booking_request):
    """Two completed sessions (500 and 200) and one still confirmed."""
    full = booking_service.create_booking(
        db, actor=patient, payload=booking_request(provider.id, DAY, "09:00"), now=MORNING
    )
    review = booking_service.create_booking(
        db,
        actor=other_patient,
        payload=booking_request(provider.id, DAY, "10:00", service_type="prescription_review"),
        now=MORNING,
    )
    open_booking = booking_service.create_booking(
        db, actor=patient, payload=booking_request(provider.id, DAY, "11:00"), now=MORNING
    )
    booking_service.set_treatment_status(db, full.id, actor=pharmacist_user, treatment_status="treated")
    booking_service.complete_with_report(
        db, review.id, actor=pharmacist_user, report_url="https://files.example.com/report.pdf"
    )
    return full, review, open_booking


def test_payment_stats_for_provider(db, provider, sessions):
    stats = provider_payment_stats(db, provider)

    assert stats.total_earned == 350
    assert stats.total_paid == 0
    assert stats.outstanding == 350
    assert stats.completed_bookings == 2
    assert [line.amount for line in stats.unpaid_bookings] == [250, 100]
    assert stats.paid_bookings == []


def test_mark_paid_only_touches_completed_unpaid(db, admin, provider, pharmacist_user, sessions):
    full, review, open_booking = sessions

    modified = mark_providers_paid(
        db, [full.id, review.id, open_booking.id], actor=admin, now=PAID_AT
    )

    assert modified == 2
    db.expire_all()
    assert db.get(Booking, full.id).provider_paid is True
    assert db.get(Booking, full.id).paid_by_user_id == admin.id
    assert db.get(Booking, open_booking.id).provider_paid is False

    stats = provider_payment_stats(db, provider)
    assert (stats.total_paid, stats.outstanding) == (350, 0)

    assert mark_providers_paid(db, [full.id], actor=admin, now=PAID_AT) == 0


def test_mark_paid_keeps_frozen_share(db, admin, sessions):
    full, _, _ = sessions
    mark_providers_paid(db, [full.id], actor=admin, now=PAID_AT)
    db.expire_all()
    booking = db.get(Booking, full.id)
    assert (booking.payment_amount, booking.provider_share) == (500, 250)


def test_mark_paid_notifies_provider_with_total(db, admin, pharmacist_user, sessions):
    full, review, _ = sessions
    mark_providers_paid(db, [full.id, review.id], actor=admin, now=PAID_AT)

    notes = list(
        db.scalars(
            select(Notification).where(
                Notification.user_id == pharmacist_user.id,
                Notification.type == NotificationType.payment_approved,
            )
        )
    )
    assert len(notes) == 1
    assert "₹350 for 2 session(s)" in notes[0].message


def test_mark_paid_requires_admin_and_ids(db, admin, pharmacist_user, sessions):
    full, _, _ = sessions
    with pytest.raises(Forbidden):
        mark_providers_paid(db, [full.id], actor=pharmacist_user)
    with pytest.raises(InvalidInput):
        mark_providers_paid(db, [], actor=admin)


def test_payout_overview_groups_by_provider(db, admin, provider, other_provider, sessions):
    overview = payout_overview(db)

    assert [item.provider_id for item in overview] == [provider.id]
    assert overview[0].name == "Phil Pharma"
    assert overview[0].total_earned == 350
