import pytest

from app.models.booking import ServiceType
from app.services.payment_shares import (
    DEFAULT_PROVIDER_SHARE,
    compute_payment_share,
    resolve_provider_share,
)


@pytest.mark.parametrize(
    ("service_type", "amount", "share"),
    [
        (ServiceType.prescription_review, 200, 100),
        (ServiceType.full_consultation, 500, 250),
        ("prescription_review", 200, 100),
        ("full_consultation", 500, 250),
    ],
)
def test_compute_payment_share(service_type, amount, share):
    result = compute_payment_share(service_type)
    assert result.payment_amount == amount
    assert result.provider_share == share


def test_compute_payment_share_rejects_unknown_service():
    with pytest.raises(ValueError):
        compute_payment_share("doctor_consultation")


def test_resolve_provider_share_defaults_to_canonical_payout():
    assert DEFAULT_PROVIDER_SHARE == 250
    assert resolve_provider_share(None) == 250
    assert resolve_provider_share(100) == 100
    assert resolve_provider_share(0) == 0
