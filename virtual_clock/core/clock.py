"""The virtual clock model.

Virtual time is extrapolated from a base pair ``(base_real, base_virtual)``::

    virtual_now = base_virtual + (real_now - base_real) * speed

Every mutation re-bases the pair at the current real instant, so a speed change
only affects time elapsed after it and never rescales the past.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Any, Callable, Optional

from .events import Listener, Notifier
from .types import ClockSnapshot, ClockState
from .utils import normalize_speed, real_now_ms, to_millis
from ..io import metrics
from ..state.store import ClockStore

logger = logging.getLogger(__name__)


class VirtualClock:
    def __init__(
        self,
        store: Optional[ClockStore] = None,
        real_now: Optional[Callable[[], float]] = None,
    ):
        self.store = store if store is not None else ClockStore()
        self._real_now = real_now or real_now_ms
        self._notifier = Notifier()

        state = self.store.load()
        if state is None:
            now = self._real_now()
            state = ClockState(base_real=now, base_virtual=now, speed=1.0)
            self._state = state
            self.store.save(state)
        else:
            state.speed = normalize_speed(state.speed)
            self._state = state
            logger.info(
                "restored virtual clock: virtual_now=%.0f speed=%sx",
                self.now(),
                state.speed,
            )

    @property
    def speed(self) -> float:
        return self._state.speed

    def real_now(self) -> float:
        return self._real_now()

    def now(self) -> float:
        """Current virtual time in ms since the epoch."""
        return self._state.virtual_at(self._real_now())

    def get_date(self, tz: Optional[tzinfo] = None) -> datetime:
        """Virtual time as a ``datetime``; naive local time unless ``tz`` is given."""
        return datetime.fromtimestamp(self.now() / 1000.0, tz)

    def set_time(self, target: Any) -> None:
        """Jump virtual time to ``target`` (ms, datetime or ISO string); speed is kept."""
        target_ms = to_millis(target)
        if target_ms is None:
            logger.warning("ignoring unparseable time %r", target)
            return
        self._state.base_real = self._real_now()
        self._state.base_virtual = target_ms
        self._commit("set_time")

    def set_speed(self, speed: Any) -> None:
        safe = normalize_speed(speed)
        current = self.now()
        self._state.base_real = self._real_now()
        self._state.base_virtual = current
        self._state.speed = safe
        self._commit("set_speed")

    def reset(self) -> None:
        now = self._real_now()
        self._state.base_real = now
        self._state.base_virtual = now
        self._state.speed = 1.0
        self._commit("reset")

    def get_state(self) -> ClockSnapshot:
        return ClockSnapshot(
            base_real=self._state.base_real,
            base_virtual=self._state.base_virtual,
            speed=self._state.speed,
            virtual_now=self.now(),
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; it is called at once and after every mutation.

        Returns a callable that removes this registration (safe to call twice).
        """
        return self._notifier.subscribe(listener, self.get_state())

    def _commit(self, operation: str) -> None:
        logger.info(
            "%s: base_real=%.0f base_virtual=%.0f speed=%sx",
            operation,
            self._state.base_real,
            self._state.base_virtual,
            self._state.speed,
        )
        metrics.inc_mutations(operation)
        self.store.save(self._state)
        self._notifier.publish(self.get_state())
