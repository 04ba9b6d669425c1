from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import client_ip, get_current_user, require_admin
from app.models.user import User
from app.schemas.booking import (
    BookingAuditOut,
    BookingCreate,
    BookingOut,
    BookingReschedule,
    MeetingLinkUpdate,
    ReportUpload,
    ReviewCreate,
    TestResultUpload,
    TreatmentStatusUpdate,
)
from app.services import bookings as booking_service
from app.services.audit import entity_history

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    return booking_service.create_booking(
        db,
        actor=user,
        payload=payload,
        request_id=request_id,
        ip_address=client_ip(request),
    )


@router.get("/mine", response_model=list[BookingOut])
def my_bookings(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return booking_service.list_bookings_for(db, user)


@router.get("/{booking_id}", response_model=BookingOut)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return booking_service.get_booking_for(db, booking_id, user)


@router.patch("/{booking_id}/cancel", response_model=BookingOut)
def cancel_booking(
    booking_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    return booking_service.cancel_booking(
        db,
        booking_id,
        actor=user,
        request_id=request_id,
        ip_address=client_ip(request),
    )


@router.patch("/{booking_id}/reschedule", response_model=BookingOut)
def reschedule_booking(
    booking_id: int,
    payload: BookingReschedule,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    return booking_service.reschedule_booking(
        db,
        booking_id,
        actor=user,
        new_date=payload.new_date,
        new_time=payload.new_time,
        request_id=request_id,
        ip_address=client_ip(request),
    )


@router.patch("/{booking_id}/treatment-status", response_model=BookingOut)
def update_treatment_status(
    booking_id: int,
    payload: TreatmentStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    return booking_service.set_treatment_status(
        db,
        booking_id,
        actor=user,
        treatment_status=payload.treatment_status,
        request_id=request_id,
        ip_address=client_ip(request),
    )


@router.put("/{booking_id}/report", response_model=BookingOut)
def upload_report(
    booking_id: int,
    payload: ReportUpload,
    request: Request,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    request_id: str | None = Header(default=None),
):
    return booking_service.complete_with_report(
        db,
        booking_id,
        actor=user,
        report_url=payload.report_url,
        request_id=request_id,
        ip_address=client_ip(request),
    )


@router.put("/{booking_id}/test-result", response_model=BookingOut)
def upload_test_result(
    booking_id: int,
    payload: TestResultUpload,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return booking_service.add_test_result(
        db, booking_id, actor=user, test_result_url=payload.test_result_url
    )


@router.patch("/{booking_id}/meeting-link", response_model=BookingOut)
def update_meeting_link(
    booking_id: int,
    payload: MeetingLinkUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return booking_service.set_meeting_link(db, booking_id, actor=user, meet_link=payload.meet_link)


@router.post("/{booking_id}/review", response_model=BookingOut)
def submit_review(
    booking_id: int,
    payload: ReviewCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return booking_service.submit_review(
        db, booking_id, actor=user, rating=payload.rating, feedback=payload.feedback
    )


@router.get("/{booking_id}/audit", response_model=list[BookingAuditOut])
def booking_audit(
    booking_id: int,
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    return entity_history(db, "booking", str(booking_id), limit=limit, offset=offset)
