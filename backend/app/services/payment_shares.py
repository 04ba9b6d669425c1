from __future__ import annotations

from typing import NamedTuple

from app.models.booking import ServiceType


class PaymentShare(NamedTuple):
    payment_amount: int
    provider_share: int


SERVICE_PRICING: dict[ServiceType, PaymentShare] = {
    ServiceType.prescription_review: PaymentShare(payment_amount=200, provider_share=100),
    ServiceType.full_consultation: PaymentShare(payment_amount=500, provider_share=250),
}

# Fallback for payout reports when a booking carries no stored share.
DEFAULT_PROVIDER_SHARE = 250

SERVICE_DESCRIPTIONS: dict[ServiceType, str] = {
    ServiceType.prescription_review: "Know Your Prescription",
    ServiceType.full_consultation: "Full Consultation",
}


def compute_payment_share(service_type: ServiceType | str) -> PaymentShare:
    return SERVICE_PRICING[ServiceType(service_type)]


def resolve_provider_share(stored_share: int | None) -> int:
    if stored_share is None:
        return DEFAULT_PROVIDER_SHARE
    return stored_share
