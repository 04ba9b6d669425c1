from datetime import date, time

import pytest

from app.core.errors import Forbidden, InvalidInput, NotFound
from app.models.provider import ProviderKind
from app.services.slot_catalog import (
    add_slot,
    build_window,
    get_provider_for_user,
    list_providers,
    replace_slots,
)

DAY = date(2030, 3, 4)


def test_build_window_parses_both_clock_formats():
    window = build_window(DAY, "9:30 AM", "10:00")
    assert (window.start_time, window.end_time) == (time(9, 30), time(10, 0))
    assert window.key == (DAY, time(9, 30))


@pytest.mark.parametrize(
    ("start", "end"),
    [("10:00", "10:00"), ("10:30", "10:00"), ("noon", "13:00"), ("10:00", "25:00")],
)
def test_build_window_rejects_bad_windows(start, end):
    with pytest.raises(InvalidInput):
        build_window(DAY, start, end)


def test_replace_slots_keeps_given_order(db, provider, add_slots):
    add_slots(provider, (DAY, time(8, 0), time(8, 30)))
    windows = [
        build_window(DAY, "14:00", "14:30"),
        build_window(DAY, "9:00 AM", "9:30 AM"),
    ]

    updated = replace_slots(db, provider, windows)

    assert [slot.key for slot in updated.slots] == [(DAY, time(14, 0)), (DAY, time(9, 0))]


def test_replace_slots_rejects_duplicates(db, provider, add_slots):
    add_slots(provider, (DAY, time(8, 0), time(8, 30)))
    windows = [build_window(DAY, "9:00", "9:30"), build_window(DAY, "9:00 AM", "9:45 AM")]

    with pytest.raises(InvalidInput, match="Duplicate slot"):
        replace_slots(db, provider, windows)

    db.refresh(provider)
    assert [slot.key for slot in provider.slots] == [(DAY, time(8, 0))]


def test_replace_slots_with_empty_catalog(db, provider, add_slots):
    add_slots(provider, (DAY, time(8, 0), time(8, 30)))
    assert replace_slots(db, provider, []).slots == []


def test_add_slot_appends_and_rejects_duplicates(db, provider, add_slots):
    add_slots(provider, (DAY, time(8, 0), time(8, 30)))

    slot = add_slot(db, provider, build_window(DAY, "07:00", "07:30"))

    assert slot.provider_id == provider.id
    db.refresh(provider)
    assert [item.key for item in provider.slots] == [(DAY, time(8, 0)), (DAY, time(7, 0))]
    with pytest.raises(InvalidInput):
        add_slot(db, provider, build_window(DAY, "8:00 AM", "9:00 AM"))


def test_provider_lookup_for_user(db, provider, pharmacist_user, patient, doctor_user):
    assert get_provider_for_user(db, pharmacist_user).id == provider.id
    with pytest.raises(Forbidden):
        get_provider_for_user(db, patient)
    with pytest.raises(NotFound):
        get_provider_for_user(db, doctor_user)


def test_list_providers_filters_by_kind(db, provider, other_provider):
    assert [item.id for item in list_providers(db)] == [provider.id, other_provider.id]
    assert [item.id for item in list_providers(db, ProviderKind.doctor)] == [other_provider.id]
