from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import require_admin
from app.models.user import User
from app.schemas.booking import MarkPaidOut, MarkPaidRequest
from app.schemas.provider import PaymentStatsOut, SweepOut
from app.services.payouts import mark_providers_paid, payout_overview
from app.services.slot_expiry import sweep_all

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/payouts", response_model=list[PaymentStatsOut])
def list_payouts(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return payout_overview(db)


@router.post("/payouts/mark-paid", response_model=MarkPaidOut)
def mark_paid(
    payload: MarkPaidRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    modified = mark_providers_paid(db, payload.booking_ids, actor=admin)
    return MarkPaidOut(message=f"{modified} payment(s) marked as done", modified_count=modified)


@router.post("/slots/sweep", response_model=SweepOut)
def sweep_expired_slots(
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return SweepOut(removed=sweep_all(db))
