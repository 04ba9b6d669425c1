from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.provider import ProviderKind


class SlotIn(BaseModel):
    slot_date: date
    start_time: str
    end_time: str


class SlotCatalogIn(BaseModel):
    slots: list[SlotIn] = Field(default_factory=list)


class SlotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slot_date: date
    start_time: time
    end_time: time


class SlotAvailabilityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slot_date: date
    start_time: time
    end_time: time
    is_booked: bool


class ProviderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    kind: ProviderKind
    display_name: str
    specialization: Optional[str] = None
    is_verified: bool
    created_at: datetime


class ProviderDetailOut(ProviderOut):
    slots: list[SlotOut] = Field(default_factory=list)
    average_rating: float = 0.0
    total_reviews: int = 0
    completed_sessions: int = 0


class PayoutLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking_id: int
    patient_name: str
    slot_date: date
    slot_time: time
    amount: int
    paid_at: Optional[datetime] = None


class PaymentStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    provider_id: int
    name: str
    total_earned: int
    total_paid: int
    outstanding: int
    completed_bookings: int
    paid_bookings: list[PayoutLineOut]
    unpaid_bookings: list[PayoutLineOut]


class SweepOut(BaseModel):
    removed: int
