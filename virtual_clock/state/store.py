"""Persistent stores for the clock state and the control widget position.

Persistence is best effort: loads turn any bad payload into ``None`` and saves
report failures as a ``PersistResult`` instead of raising.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from ..core.types import ClockState, PersistResult, WidgetPosition
from ..core.utils import is_number, is_representable
from ..io import metrics
from ..io.persistence import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)

STATE_KEY = "virtualClockState_v1"
POSITION_KEY = "virtualClockWidgetPos_v1"

_STATE_FIELDS = ("baseRealTime", "baseVirtualTime", "speed")


def _read_record(storage: KeyValueStorage, key: str) -> Optional[Dict[str, Any]]:
    try:
        raw = storage.get_item(key)
    except (OSError, ValueError) as e:
        logger.warning("could not read %s from storage: %s", key, e)
        return None
    if not raw:
        return None
    try:
        obj = json.loads(raw)
    except ValueError as e:
        logger.warning("ignoring malformed %s record: %s", key, e)
        return None
    if not isinstance(obj, dict):
        logger.warning("ignoring %s record that is not an object", key)
        return None
    return obj


def _write_record(storage: KeyValueStorage, key: str, record: Dict[str, Any]) -> PersistResult:
    try:
        storage.set_item(key, json.dumps(record, allow_nan=False))
    except (OSError, TypeError, ValueError) as e:
        logger.warning("could not save %s: %s", key, e)
        metrics.inc_persist_failures()
        return PersistResult.failure(e)
    return PersistResult.success()


class ClockStore:
    def __init__(self, storage: Optional[KeyValueStorage] = None, key: str = STATE_KEY):
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key

    def load(self) -> Optional[ClockState]:
        obj = _read_record(self.storage, self.key)
        if obj is None:
            return None
        if not all(is_number(obj.get(name)) for name in _STATE_FIELDS):
            logger.warning("ignoring %s record with missing or non-numeric fields", self.key)
            return None
        if not is_representable(obj["baseVirtualTime"]):
            logger.warning("ignoring %s record with an out-of-range virtual time", self.key)
            return None
        return ClockState(
            base_real=float(obj["baseRealTime"]),
            base_virtual=float(obj["baseVirtualTime"]),
            speed=float(obj["speed"]),
        )

    def save(self, state: ClockState) -> PersistResult:
        return _write_record(self.storage, self.key, state.to_record())


class PositionStore:
    def __init__(self, storage: Optional[KeyValueStorage] = None, key: str = POSITION_KEY):
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key

    def load(self) -> Optional[WidgetPosition]:
        obj = _read_record(self.storage, self.key)
        if obj is None:
            return None
        if not (is_number(obj.get("left")) and is_number(obj.get("top"))):
            return None
        return WidgetPosition(left=float(obj["left"]), top=float(obj["top"]))

    def save(self, position: WidgetPosition) -> PersistResult:
        return _write_record(
            self.storage, self.key, {"left": position.left, "top": position.top}
        )
