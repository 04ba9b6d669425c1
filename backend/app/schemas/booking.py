from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.booking import BookingStatus, PatientSex, ServiceType, TreatmentStatus
from app.models.provider import ProviderKind
from app.schemas.actor import ActorOut


class PatientDetailsIn(BaseModel):
    age: Optional[int] = None
    sex: Optional[PatientSex] = None
    prescription_url: Optional[str] = None
    additional_notes: Optional[str] = None


class BookingCreate(BaseModel):
    provider_id: int
    slot_date: date
    slot_time: str
    service_type: str
    patient_details: Optional[PatientDetailsIn] = None
    payment_id: Optional[str] = None


class BookingReschedule(BaseModel):
    new_date: date
    new_time: str


class TreatmentStatusUpdate(BaseModel):
    treatment_status: str


class ReportUpload(BaseModel):
    report_url: str


class TestResultUpload(BaseModel):
    test_result_url: str


class MeetingLinkUpdate(BaseModel):
    meet_link: str


class ReviewCreate(BaseModel):
    rating: int
    feedback: Optional[str] = None


class MarkPaidRequest(BaseModel):
    booking_ids: list[int] = Field(default_factory=list)


class ProviderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: ProviderKind
    display_name: str


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient: ActorOut
    provider: ProviderSummary
    slot_date: date
    slot_time: time
    service_type: ServiceType
    status: BookingStatus
    treatment_status: TreatmentStatus
    payment_id: Optional[str] = None
    payment_amount: int
    provider_share: int
    provider_paid: bool
    paid_at: Optional[datetime] = None
    patient_age: int
    patient_sex: PatientSex
    prescription_url: str
    additional_notes: Optional[str] = None
    meet_link: Optional[str] = None
    counselling_report_url: Optional[str] = None
    test_result_urls: list[str] = Field(default_factory=list)
    review_rating: Optional[int] = None
    review_feedback: Optional[str] = None
    review_submitted_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by_user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ReviewOut(BaseModel):
    booking_id: int
    patient_name: str
    slot_date: date
    rating: int
    feedback: Optional[str] = None
    submitted_at: Optional[datetime] = None


class ReviewListOut(BaseModel):
    reviews: list[ReviewOut]
    total_reviews: int
    average_rating: float


class MarkPaidOut(BaseModel):
    message: str
    modified_count: int


class BookingAuditOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    action: str
    actor_user_id: Optional[int] = None
    actor_email: Optional[str] = None
    request_id: Optional[str] = None
    ip_address: Optional[str] = None
    before: Optional[dict] = Field(default=None, validation_alias="before_json")
    after: Optional[dict] = Field(default=None, validation_alias="after_json")
