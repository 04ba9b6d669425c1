from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from app.services.slot_expiry import sweep_all, sweep_provider

IST = ZoneInfo("Asia/Kolkata")
DAY = date(2025, 1, 10)


def _keys(db, provider):
    db.refresh(provider)
    return [slot.key for slot in provider.slots]


def test_sweep_drops_only_slots_whose_end_has_passed(db, provider, add_slots):
    add_slots(
        provider,
        (DAY, time(9, 0), time(9, 30)),
        (DAY, time(10, 0), time(10, 30)),
        (date(2025, 1, 11), time(9, 0), time(9, 30)),
    )
    now = datetime(2025, 1, 10, 10, 15, tzinfo=IST)

    removed = sweep_provider(db, provider.id, now=now)

    assert removed == 1
    assert _keys(db, provider) == [(DAY, time(10, 0)), (date(2025, 1, 11), time(9, 0))]
    assert sweep_provider(db, provider.id, now=now) == 0


def test_slot_is_expired_exactly_at_its_end(db, provider, add_slots):
    add_slots(provider, (DAY, time(10, 0), time(10, 30)))

    assert sweep_provider(db, provider.id, now=datetime(2025, 1, 10, 10, 29, tzinfo=IST)) == 0
    assert sweep_provider(db, provider.id, now=datetime(2025, 1, 10, 10, 30, tzinfo=IST)) == 1


def test_sweep_uses_slot_timezone_not_caller_timezone(db, provider, add_slots):
    add_slots(provider, (DAY, time(10, 0), time(10, 30)))
    utc = ZoneInfo("UTC")

    # 04:59 UTC is 10:29 in Kolkata
    assert sweep_provider(db, provider.id, now=datetime(2025, 1, 10, 4, 59, tzinfo=utc)) == 0
    assert sweep_provider(db, provider.id, now=datetime(2025, 1, 10, 5, 0, tzinfo=utc)) == 1


def test_sweep_all_covers_every_provider(db, provider, other_provider, add_slots):
    add_slots(provider, (DAY, time(9, 0), time(9, 30)), (DAY, time(18, 0), time(18, 30)))
    add_slots(other_provider, (DAY, time(8, 0), time(8, 30)))
    now = datetime(2025, 1, 10, 12, 0, tzinfo=IST)

    assert sweep_all(db, now=now) == 2
    assert _keys(db, provider) == [(DAY, time(18, 0))]
    assert _keys(db, other_provider) == []
    assert sweep_all(db, now=now) == 0


def test_sweep_all_dry_run_leaves_catalog_untouched(db, provider, add_slots):
    add_slots(provider, (DAY, time(9, 0), time(9, 30)))
    now = datetime(2025, 1, 10, 12, 0, tzinfo=IST)

    assert sweep_all(db, now=now, apply=False) == 1
    assert _keys(db, provider) == [(DAY, time(9, 0))]
