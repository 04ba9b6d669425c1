from __future__ import annotations

import enum
from datetime import date, datetime, time

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin


class ServiceType(str, enum.Enum):
    prescription_review = "prescription_review"
    full_consultation = "full_consultation"


class BookingStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class TreatmentStatus(str, enum.Enum):
    untreated = "untreated"
    treated = "treated"


class PatientSex(str, enum.Enum):
    male = "male"
    female = "female"
    other = "other"


ACTIVE_STATUSES = (BookingStatus.pending, BookingStatus.confirmed)

_ACTIVE_SLOT_PREDICATE = text("status IN ('pending', 'confirmed')")


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"
    __table_args__ = (
        Index(
            "uq_bookings_active_slot",
            "provider_id",
            "slot_date",
            "slot_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_bookings_provider_status", "provider_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    provider_id: Mapped[int] = mapped_column(ForeignKey("providers.id"), nullable=False)
    slot_date: Mapped[date] = mapped_column(Date, nullable=False)
    slot_time: Mapped[time] = mapped_column(Time, nullable=False)
    service_type: Mapped[ServiceType] = mapped_column(
        Enum(ServiceType, name="service_type"), nullable=False
    )
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status"),
        default=BookingStatus.confirmed,
        nullable=False,
    )
    treatment_status: Mapped[TreatmentStatus] = mapped_column(
        Enum(TreatmentStatus, name="treatment_status"),
        default=TreatmentStatus.untreated,
        nullable=False,
    )

    payment_id: Mapped[str | None] = mapped_column(String(120), nullable=True)
    payment_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    provider_share: Mapped[int] = mapped_column(Integer, nullable=False)
    provider_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    patient_age: Mapped[int] = mapped_column(Integer, nullable=False)
    patient_sex: Mapped[PatientSex] = mapped_column(
        Enum(PatientSex, name="patient_sex"), nullable=False
    )
    prescription_url: Mapped[str] = mapped_column(Text, nullable=False)
    additional_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    meet_link: Mapped[str | None] = mapped_column(Text, nullable=True)
    counselling_report_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    test_result_urls: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    review_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    review_feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    review_submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    patient = relationship("User", foreign_keys=[patient_user_id], lazy="joined")
    provider = relationship("Provider", lazy="joined")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def has_review(self) -> bool:
        return self.review_rating is not None
