import math
from datetime import datetime, timezone

from virtual_clock.core.clock import VirtualClock
from virtual_clock.io.persistence import MemoryStorage
from virtual_clock.state.store import ClockStore

from conftest import FakeRealClock


def test_new_clock_starts_at_real_time(clock, real):
    state = clock.get_state()
    assert state.speed == 1
    assert state.base_real == state.base_virtual == real.now
    assert clock.now() == real.now


def test_virtual_time_follows_base_pair():
    real = FakeRealClock(start=1000)
    storage = MemoryStorage(
        {"virtualClockState_v1": '{"baseRealTime": 1000, "baseVirtualTime": 50000, "speed": 2}'}
    )
    clock = VirtualClock(store=ClockStore(storage), real_now=real)
    real.advance(500)
    assert clock.now() == 51000


def test_set_speed_advances_linearly(clock, real):
    real.advance(1234)
    clock.set_speed(3)
    at_change = clock.now()
    for d in (0, 1, 250, 10_000):
        real.now = clock.get_state().base_real + d
        assert math.isclose(clock.now(), at_change + d * 3)


def test_set_speed_has_no_discontinuity(clock, real):
    clock.set_speed(4)
    real.advance(1000)
    before = clock.now()
    clock.set_speed(0.5)
    assert clock.now() == before
    real.advance(1000)
    assert clock.now() == before + 500


def test_set_speed_does_not_rescale_the_past(clock, real):
    start = clock.now()
    real.advance(1000)
    clock.set_speed(10)
    assert clock.now() == start + 1000


def test_non_positive_speed_becomes_one(clock):
    clock.set_speed(0)
    assert clock.get_state().speed == 1
    clock.set_speed(-3)
    assert clock.speed == 1
    clock.set_speed(float("nan"))
    assert clock.speed == 1
    clock.set_speed("fast")
    assert clock.speed == 1


def test_set_time_jumps_and_keeps_speed(clock, real):
    clock.set_speed(2)
    clock.set_time(86_400_000)
    assert clock.now() == 86_400_000
    real.advance(300)
    assert clock.now() == 86_400_000 + 600
    assert clock.speed == 2


def test_set_time_accepts_datetime_and_iso_string(clock):
    target = datetime(2030, 5, 17, 8, 30, tzinfo=timezone.utc)
    clock.set_time(target)
    assert clock.now() == target.timestamp() * 1000

    clock.set_time("2031-01-02T03:04:05+00:00")
    assert clock.get_date(timezone.utc) == datetime(2031, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_unparseable_time_leaves_state_unchanged(clock, storage):
    clock.set_time(42_000)
    before = clock.get_state()
    saved = storage.get_item("virtualClockState_v1")
    seen = []
    clock.subscribe(seen.append)

    for bad in ("not a date", None, float("inf"), True, object()):
        clock.set_time(bad)

    assert clock.get_state() == before
    assert storage.get_item("virtualClockState_v1") == saved
    assert len(seen) == 1


def test_reset_twice_restores_real_time(clock, real):
    clock.set_time(5)
    clock.set_speed(7)
    clock.reset()
    assert clock.speed == 1 and clock.now() == real.now
    clock.reset()
    assert clock.speed == 1 and clock.now() == real.now
    real.advance(100)
    assert clock.now() == real.now


def test_get_state_is_a_copy(clock, real):
    snap = clock.get_state()
    real.advance(10)
    clock.set_speed(2)
    assert snap.speed == 1
    assert snap.virtual_now == snap.base_virtual
    assert snap.to_dict()["virtualNow"] == snap.virtual_now


def test_get_date_matches_now(clock):
    clock.set_time(datetime(2020, 2, 29, 23, 59, tzinfo=timezone.utc))
    assert clock.get_date(timezone.utc) == datetime(2020, 2, 29, 23, 59, tzinfo=timezone.utc)
    assert clock.get_date().tzinfo is None


def test_speed_too_large_for_a_float_becomes_one(clock):
    clock.set_speed(2)
    clock.set_speed(10**400)
    assert clock.speed == 1


def test_out_of_range_time_is_ignored(clock):
    clock.set_time(42_000)
    before = clock.get_state()
    clock.set_time(10**400)
    clock.set_time(1e20)
    clock.set_time(-1e20)
    assert clock.get_state() == before
    assert clock.get_date() == datetime.fromtimestamp(42)
