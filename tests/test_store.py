import json

import pytest

from virtual_clock.core.clock import VirtualClock
from virtual_clock.core.types import ClockState, WidgetPosition
from virtual_clock.io.persistence import JsonFileStorage, MemoryStorage
from virtual_clock.state.store import ClockStore, PositionStore, STATE_KEY


class BrokenStorage(MemoryStorage):
    def set_item(self, key, value):
        raise OSError("quota exceeded")


def test_first_run_persists_defaults(clock, storage, real):
    record = json.loads(storage.get_item(STATE_KEY))
    assert record == {"baseRealTime": real.now, "baseVirtualTime": real.now, "speed": 1.0}


def test_reload_reproduces_virtual_time(clock, storage, real):
    clock.set_time(10_000)
    real.advance(50)
    clock.set_speed(2.5)
    real.advance(400)

    reloaded = VirtualClock(store=ClockStore(storage), real_now=real)
    assert reloaded.now() == clock.now()
    assert reloaded.get_state() == clock.get_state()


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        "[1, 2, 3]",
        '{"baseRealTime": 1, "baseVirtualTime": 2}',
        '{"baseRealTime": "1", "baseVirtualTime": 2, "speed": 1}',
        '{"baseRealTime": 1, "baseVirtualTime": 2, "speed": true}',
        '{"baseRealTime": 1, "baseVirtualTime": null, "speed": 1}',
        '{"baseRealTime": 1, "baseVirtualTime": 1e20, "speed": 1}',
    ],
)
def test_malformed_record_loads_as_absent(raw):
    store = ClockStore(MemoryStorage({STATE_KEY: raw}))
    assert store.load() is None


def test_malformed_record_falls_back_to_defaults(real):
    storage = MemoryStorage({STATE_KEY: '{"speed": "2"}'})
    clock = VirtualClock(store=ClockStore(storage), real_now=real)
    assert clock.now() == real.now
    assert clock.speed == 1
    # defaults overwrite the bad record
    assert json.loads(storage.get_item(STATE_KEY))["speed"] == 1.0


def test_stored_non_positive_speed_is_normalized(real):
    storage = MemoryStorage(
        {STATE_KEY: '{"baseRealTime": 1, "baseVirtualTime": 2, "speed": -4}'}
    )
    clock = VirtualClock(store=ClockStore(storage), real_now=real)
    assert clock.speed == 1


def test_failed_save_reports_result_and_clock_keeps_working(real):
    store = ClockStore(BrokenStorage())
    result = store.save(ClockState(base_real=1, base_virtual=1))
    assert not result.ok
    assert "quota exceeded" in result.error

    clock = VirtualClock(store=store, real_now=real)
    clock.set_speed(3)
    real.advance(10)
    assert clock.now() == real.now - 10 + 30


def test_json_file_storage_round_trip(tmp_path, real):
    path = tmp_path / "nested" / "storage.json"
    clock = VirtualClock(store=ClockStore(JsonFileStorage(path)), real_now=real)
    clock.set_time(123_456)
    clock.set_speed(4)

    on_disk = json.loads(path.read_text())
    assert json.loads(on_disk[STATE_KEY]) == {
        "baseRealTime": real.now,
        "baseVirtualTime": 123_456,
        "speed": 4,
    }
    reloaded = VirtualClock(store=ClockStore(JsonFileStorage(path)), real_now=real)
    assert reloaded.now() == 123_456


def test_corrupt_storage_file_is_tolerated(tmp_path, real):
    path = tmp_path / "storage.json"
    path.write_text("garbage")
    clock = VirtualClock(store=ClockStore(JsonFileStorage(path)), real_now=real)
    assert clock.now() == real.now
    # the write after loading defaults replaced the corrupt file
    assert STATE_KEY in json.loads(path.read_text())


def test_position_store(storage):
    positions = PositionStore(storage)
    assert positions.load() is None
    assert positions.save(WidgetPosition(left=12, top=34)).ok
    assert positions.load() == WidgetPosition(left=12, top=34)

    storage.set_item(positions.key, '{"left": "a", "top": 3}')
    assert positions.load() is None


def test_number_too_large_for_a_float_loads_as_absent(real):
    huge = "1" + "0" * 400
    raw = '{"baseRealTime": %s, "baseVirtualTime": 2, "speed": 1}' % huge
    assert ClockStore(MemoryStorage({STATE_KEY: raw})).load() is None

    clock = VirtualClock(store=ClockStore(MemoryStorage({STATE_KEY: raw})), real_now=real)
    assert clock.now() == real.now
    assert clock.speed == 1
