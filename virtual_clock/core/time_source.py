"""Process-wide replacement of the ambient time source.

Installing a ``TimeSourceOverride`` swaps ``datetime.datetime``, ``datetime.date``,
``time.time`` and ``time.time_ns`` for virtual versions driven by a
``VirtualClock``, and rebinds names already imported elsewhere (``from datetime
import datetime``), so unmodified code observes virtual time.

What stays real:

* ``datetime(2024, 1, 1, ...)`` and every other construction with explicit
  components, plus the parsing/conversion helpers (``fromisoformat``,
  ``strptime``, ``fromtimestamp``, ``combine``), which are inherited unchanged.
* ``time.ctime()`` / ``time.asctime()`` called without arguments. Like calling
  ``Date()`` as a plain function in a browser, they keep describing the real
  current time.
* ``RealDateTime``, ``RealDate``, ``real_time`` and ``real_time_ns`` below, for
  code that must bypass virtualization.

Prefer passing a ``VirtualClock`` handle to code you own; this module is for
code you cannot change.
"""

from __future__ import annotations

import datetime as _dt
import logging
import sys
import time
from types import ModuleType
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .clock import VirtualClock

logger = logging.getLogger(__name__)

RealDateTime = _dt.datetime
RealDate = _dt.date
real_time = time.time
real_time_ns = time.time_ns

DEFAULT_IGNORE: Tuple[str, ...] = (
    "virtual_clock",
    "threading",
    "multiprocessing",
    "queue",
    "concurrent",
    "selectors",
    "asyncio",
    "_pytest",
    "pluggy",
)

# the stdlib modules that define the real objects are patched explicitly or not at all
_PATCHED_DIRECTLY = ("datetime", "_datetime", "_pydatetime", "time")

_active: Optional["TimeSourceOverride"] = None


def _virtual_seconds() -> float:
    if _active is None:
        return real_time()
    return _active.clock.now() / 1000.0


def virtual_time() -> float:
    return _virtual_seconds()


def virtual_time_ns() -> int:
    if _active is None:
        return real_time_ns()
    return int(_active.clock.now() * 1_000_000)


class _VirtualDateMeta(type):
    @classmethod
    def __instancecheck__(self, obj):
        return isinstance(obj, RealDate)

    @classmethod
    def __subclasscheck__(self, subclass):
        return issubclass(subclass, RealDate)


class _VirtualDateTimeMeta(type):
    @classmethod
    def __instancecheck__(self, obj):
        return isinstance(obj, RealDateTime)

    @classmethod
    def __subclasscheck__(self, subclass):
        return issubclass(subclass, RealDateTime)


class VirtualDate(RealDate, metaclass=_VirtualDateMeta):
    def __new__(cls, *args, **kwargs):
        if not args and not kwargs:
            return cls.today()
        return RealDate.__new__(cls, *args, **kwargs)

    @classmethod
    def today(cls):
        return cls.fromtimestamp(_virtual_seconds())


class VirtualDateTime(RealDateTime, metaclass=_VirtualDateTimeMeta):
    def __new__(cls, *args, **kwargs):
        # zero arguments means "now", explicit components keep their meaning
        if not args and not kwargs:
            return cls.now()
        return RealDateTime.__new__(cls, *args, **kwargs)

    @classmethod
    def now(cls, tz=None):
        return cls.fromtimestamp(_virtual_seconds(), tz)

    @classmethod
    def today(cls):
        return cls.now()

    @classmethod
    def utcnow(cls):
        return cls.fromtimestamp(_virtual_seconds(), _dt.timezone.utc).replace(tzinfo=None)

    def date(self):
        return VirtualDate(self.year, self.month, self.day)


_SWAPS: Tuple[Tuple[Any, Any], ...] = (
    (RealDateTime, VirtualDateTime),
    (RealDate, VirtualDate),
    (real_time, virtual_time),
    (real_time_ns, virtual_time_ns),
)


def _swap_for(value: Any, forward: bool) -> Any:
    for real, virtual in _SWAPS:
        source, target = (real, virtual) if forward else (virtual, real)
        if value is source:
            return target
    return None


class TimeSourceOverride:
    def __init__(
        self,
        clock: VirtualClock,
        ignore: Iterable[str] = DEFAULT_IGNORE,
        patch_modules: bool = True,
    ):
        self.clock = clock
        self.ignore = tuple(ignore)
        self.patch_modules = patch_modules
        self._undo: List[Tuple[Any, str, Any]] = []

    @property
    def installed(self) -> bool:
        return _active is self

    def install(self) -> "TimeSourceOverride":
        global _active
        if _active is self:
            return self
        if _active is not None:
            raise RuntimeError("another TimeSourceOverride is already installed")
        _active = self
        self._patch(_dt, "datetime", VirtualDateTime)
        self._patch(_dt, "date", VirtualDate)
        self._patch(time, "time", virtual_time)
        self._patch(time, "time_ns", virtual_time_ns)
        if self.patch_modules:
            for module in self._candidate_modules():
                self._rebind(module, forward=True)
        logger.info("virtual time source installed (%d names patched)", len(self._undo))
        return self

    def uninstall(self) -> None:
        global _active
        if _active is not self:
            return
        for owner, name, original in reversed(self._undo):
            setattr(owner, name, original)
        self._undo.clear()
        # modules imported while installed may have bound the virtual types
        if self.patch_modules:
            for module in self._candidate_modules():
                self._rebind(module, forward=False, record=False)
        _active = None
        logger.info("virtual time source removed")

    def __enter__(self) -> "TimeSourceOverride":
        return self.install()

    def __exit__(self, exc_type, exc, tb):
        self.uninstall()

    def _patch(self, owner: Any, name: str, value: Any) -> None:
        self._undo.append((owner, name, getattr(owner, name)))
        setattr(owner, name, value)

    def _candidate_modules(self) -> List[ModuleType]:
        modules = []
        for name, module in list(sys.modules.items()):
            if module is None or name in _PATCHED_DIRECTLY:
                continue
            if any(name == prefix or name.startswith(prefix + ".") for prefix in self.ignore):
                continue
            modules.append(module)
        return modules

    def _rebind(self, module: ModuleType, forward: bool, record: bool = True) -> None:
        try:
            namespace: Dict[str, Any] = dict(vars(module))
        except TypeError:
            return
        for attr, value in namespace.items():
            replacement = _swap_for(value, forward)
            if replacement is None:
                continue
            try:
                if record:
                    self._patch(module, attr, replacement)
                else:
                    setattr(module, attr, replacement)
            except (AttributeError, TypeError):
                logger.debug("could not rebind %s.%s", module.__name__, attr)


def active_override() -> Optional[TimeSourceOverride]:
    return _active
