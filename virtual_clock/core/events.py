"""Change notification for clock observers."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .types import ClockSnapshot
from ..io import metrics

logger = logging.getLogger(__name__)

Listener = Callable[[ClockSnapshot], None]


class Subscription:
    """Handle for one registration; calling it (or ``unsubscribe``) removes it."""

    def __init__(self, notifier: "Notifier", listener: Listener):
        self._notifier: Optional[Notifier] = notifier
        self.listener = listener

    @property
    def active(self) -> bool:
        return self._notifier is not None

    def unsubscribe(self) -> None:
        if self._notifier is None:
            return
        self._notifier._remove(self)
        self._notifier = None

    def __call__(self) -> None:
        self.unsubscribe()


class Notifier:
    def __init__(self):
        self._subscriptions: List[Subscription] = []

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: Listener, snapshot: ClockSnapshot) -> Subscription:
        """Register ``listener`` and hand it ``snapshot`` straight away."""
        if not callable(listener):
            raise TypeError("listener must be callable")
        sub = Subscription(self, listener)
        self._subscriptions.append(sub)
        self._deliver(sub, snapshot)
        return sub

    def publish(self, snapshot: ClockSnapshot) -> None:
        # iterate over a copy: listeners may unsubscribe while being notified
        for sub in list(self._subscriptions):
            if sub.active:
                self._deliver(sub, snapshot)

    def clear(self) -> None:
        for sub in list(self._subscriptions):
            sub.unsubscribe()

    def _remove(self, sub: Subscription) -> None:
        # identity match, so the same function registered twice keeps its other slot
        for i, existing in enumerate(self._subscriptions):
            if existing is sub:
                del self._subscriptions[i]
                return

    def _deliver(self, sub: Subscription, snapshot: ClockSnapshot) -> None:
        try:
            sub.listener(snapshot)
        except Exception:
            logger.warning("clock listener %r raised", sub.listener, exc_info=True)
            metrics.inc_listener_errors()
