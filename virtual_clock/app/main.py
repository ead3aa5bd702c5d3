"""App bootstrap: builds the process-wide clock and, optionally, patches time.

Initialization order: settings -> logging -> storage -> clock -> override.
``get_clock()`` creates the singleton on first use; code that can take a handle
should receive it from the bootstrap rather than calling ``get_clock()`` itself.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import Settings
from ..core.clock import VirtualClock
from ..core.time_source import TimeSourceOverride
from ..io.persistence import JsonFileStorage, KeyValueStorage, MemoryStorage
from ..state.store import ClockStore, PositionStore

_clock: Optional[VirtualClock] = None
_override: Optional[TimeSourceOverride] = None


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def build_storage(settings: Settings) -> KeyValueStorage:
    if settings.storage == "memory":
        return MemoryStorage()
    return JsonFileStorage(settings.storage_path)


def build_clock(settings: Settings, storage: Optional[KeyValueStorage] = None) -> VirtualClock:
    storage = storage if storage is not None else build_storage(settings)
    return VirtualClock(store=ClockStore(storage, key=settings.state_key))


def build_position_store(settings: Settings, storage: Optional[KeyValueStorage] = None) -> PositionStore:
    storage = storage if storage is not None else build_storage(settings)
    return PositionStore(storage, key=settings.position_key)


def get_clock(settings: Optional[Settings] = None) -> VirtualClock:
    global _clock
    if _clock is None:
        settings = settings or Settings.from_env()
        configure_logging(settings.log_level)
        _clock = build_clock(settings)
    return _clock


def activate(settings: Optional[Settings] = None, patch: Optional[bool] = None) -> VirtualClock:
    """Create the singleton clock and install the ambient override if requested."""
    global _override
    settings = settings or Settings.from_env()
    clock = get_clock(settings)
    should_patch = settings.patch if patch is None else patch
    if should_patch:
        if _override is None:
            _override = TimeSourceOverride(clock)
        _override.install()
    return clock


def shutdown() -> None:
    """Undo ``activate``; mainly for tests and embedding."""
    global _clock, _override
    if _override is not None:
        _override.uninstall()
        _override = None
    _clock = None
