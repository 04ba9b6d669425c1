from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import require_roles
from app.models.booking import Booking, BookingStatus
from app.models.provider import ProviderKind
from app.models.user import User
from app.schemas.booking import ReviewListOut, ReviewOut
from app.schemas.provider import (
    PaymentStatsOut,
    ProviderDetailOut,
    ProviderOut,
    SlotAvailabilityOut,
    SlotCatalogIn,
    SlotIn,
    SlotOut,
)
from app.services.availability import get_availability
from app.services.bookings import provider_reviews
from app.services.payouts import provider_payment_stats
from app.services.slot_catalog import (
    add_slot,
    build_window,
    get_provider,
    get_provider_for_user,
    list_providers,
    replace_slots,
)
from app.services.slot_expiry import sweep_provider

router = APIRouter(prefix="/providers", tags=["providers"])

require_provider = require_roles("pharmacist", "doctor", "nutritionist")


@router.get("", response_model=list[ProviderOut])
def list_all_providers(
    kind: ProviderKind | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return list_providers(db, kind=kind)


@router.get("/me/payment-stats", response_model=PaymentStatsOut)
def my_payment_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_provider),
):
    provider = get_provider_for_user(db, user)
    return provider_payment_stats(db, provider)


@router.put("/me/slots", response_model=list[SlotOut])
def replace_my_slots(
    payload: SlotCatalogIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_provider),
):
    provider = get_provider_for_user(db, user)
    windows = [build_window(item.slot_date, item.start_time, item.end_time) for item in payload.slots]
    provider = replace_slots(db, provider, windows)
    return provider.slots


@router.post("/me/slots", response_model=SlotOut, status_code=status.HTTP_201_CREATED)
def add_my_slot(
    payload: SlotIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_provider),
):
    provider = get_provider_for_user(db, user)
    window = build_window(payload.slot_date, payload.start_time, payload.end_time)
    return add_slot(db, provider, window)


@router.get("/{provider_id}", response_model=ProviderDetailOut)
def get_provider_detail(provider_id: int, db: Session = Depends(get_db)):
    provider = get_provider(db, provider_id)
    sweep_provider(db, provider.id)
    reviews, average = provider_reviews(db, provider.id)
    completed = db.scalar(
        select(func.count(Booking.id)).where(
            Booking.provider_id == provider.id,
            Booking.status == BookingStatus.completed,
        )
    )
    detail = ProviderDetailOut.model_validate(provider)
    detail.average_rating = average
    detail.total_reviews = len(reviews)
    detail.completed_sessions = completed or 0
    return detail


@router.get("/{provider_id}/availability", response_model=list[SlotAvailabilityOut])
def provider_availability(provider_id: int, db: Session = Depends(get_db)):
    return get_availability(db, provider_id)


@router.get("/{provider_id}/reviews", response_model=ReviewListOut)
def list_provider_reviews(provider_id: int, db: Session = Depends(get_db)):
    reviewed, average = provider_reviews(db, provider_id)
    reviews = [
        ReviewOut(
            booking_id=booking.id,
            patient_name=booking.patient.display_name if booking.patient else "Patient",
            slot_date=booking.slot_date,
            rating=booking.review_rating,
            feedback=booking.review_feedback,
            submitted_at=booking.review_submitted_at,
        )
        for booking in reviewed
    ]
    return ReviewListOut(reviews=reviews, total_reviews=len(reviews), average_rating=average)

