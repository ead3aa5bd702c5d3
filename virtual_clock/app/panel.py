"""Headless control panel for the virtual clock.

Holds what a floating clock widget shows (current virtual time, speed, the
editable inputs, visibility and position) and turns user actions into clock
mutations. A UI toolkit binds its widgets to these attributes and methods.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from ..core.clock import VirtualClock
from ..core.types import ClockSnapshot, WidgetPosition
from ..core.utils import clamp
from ..state.store import PositionStore

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

DRAG_THRESHOLD_PX = 3


def format_display(dt: datetime) -> str:
    return f"{dt:%Y-%m-%d} ({WEEKDAYS[dt.weekday()]}) {dt:%H:%M:%S}"


def format_speed(speed: float) -> str:
    return f"speed: {speed:.2f}x"


def to_datetime_local(dt: datetime) -> str:
    """Value for an HTML ``datetime-local`` style input: ``YYYY-MM-DDTHH:MM``."""
    return f"{dt:%Y-%m-%dT%H:%M}"


def parse_datetime_local(text: str) -> Optional[datetime]:
    """Parse ``YYYY-MM-DDTHH:MM`` as local time; None when any part is invalid."""
    if not text or "T" not in text:
        return None
    date_part, time_part = text.strip().split("T", 1)
    try:
        year, month, day = (int(s) for s in date_part.split("-"))
        hour, minute = (int(s) for s in time_part.split(":")[:2])
        return datetime(year, month, day, hour, minute)
    except ValueError:
        return None


def parse_speed(text: str) -> Optional[float]:
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


class ControlPanel:
    def __init__(
        self,
        clock: VirtualClock,
        positions: Optional[PositionStore] = None,
        viewport: Tuple[float, float] = (400, 800),
    ):
        self.clock = clock
        self.positions = positions
        self.viewport = viewport
        self.visible = False
        self.current_text = "--"
        self.speed_text = format_speed(1.0)
        self.datetime_input = ""
        self.speed_input = ""
        self.position = self._initial_position()
        self._drag_origin: Optional[Tuple[float, float, WidgetPosition]] = None
        self._moved = False
        self._suppress_click = False
        self._unsubscribe = clock.subscribe(self._on_change)

    def _initial_position(self) -> WidgetPosition:
        saved = self.positions.load() if self.positions is not None else None
        if saved is not None:
            return saved
        vw, vh = self.viewport
        return WidgetPosition(left=vw - 80, top=vh - 180)

    def _on_change(self, snapshot: ClockSnapshot) -> None:
        self.refresh()

    def refresh(self) -> None:
        """Re-render the display; also meant to be driven by a 1 s timer."""
        self.current_text = format_display(self.clock.get_date())
        self.speed_text = format_speed(self.clock.speed)

    def sync_inputs(self) -> None:
        self.datetime_input = to_datetime_local(self.clock.get_date())
        self.speed_input = f"{self.clock.speed:.2f}"

    def toggle(self, show: Optional[bool] = None) -> bool:
        self.visible = (not self.visible) if show is None else show
        if self.visible:
            self.sync_inputs()
        return self.visible

    def click(self) -> None:
        if self._suppress_click:
            # the pointer-up that ended a drag is not a click
            self._suppress_click = False
            return
        self.toggle()

    def set_to_now(self) -> None:
        """Virtual time = real time, keeping the current speed."""
        self.clock.set_time(self.clock.real_now())
        self.sync_inputs()

    def reset(self) -> None:
        self.clock.reset()
        self.sync_inputs()

    def apply(self, datetime_text: Optional[str] = None, speed_text: Optional[str] = None) -> None:
        """Apply the time input, then the speed input; invalid parts are skipped."""
        if datetime_text is not None:
            self.datetime_input = datetime_text
        if speed_text is not None:
            self.speed_input = speed_text

        target = parse_datetime_local(self.datetime_input)
        if target is not None:
            self.clock.set_time(target)
        speed = parse_speed(self.speed_input)
        if speed is not None:
            self.clock.set_speed(speed)
        self.sync_inputs()

    def begin_drag(self, x: float, y: float) -> None:
        self._drag_origin = (x, y, self.position)
        self._moved = False

    def drag_to(self, x: float, y: float) -> None:
        if self._drag_origin is None:
            return
        start_x, start_y, start = self._drag_origin
        dx, dy = x - start_x, y - start_y
        if abs(dx) + abs(dy) > DRAG_THRESHOLD_PX:
            self._moved = True
        vw, vh = self.viewport
        self.position = WidgetPosition(
            left=clamp(start.left + dx, 4, vw - 60),
            top=clamp(start.top + dy, 24, vh - 80),
        )

    def end_drag(self) -> None:
        if self._drag_origin is None:
            return
        self._drag_origin = None
        if self.positions is not None:
            self.positions.save(self.position)
        self._suppress_click = self._moved

    def close(self) -> None:
        self._unsubscribe()


def format_clock(dt: datetime) -> str:
    return f"{dt:%H:%M}"


def format_lock_date(dt: datetime) -> str:
    return f"{WEEKDAYS[dt.weekday()]}, {dt.month}/{dt.day}"


def format_unix(ms: float) -> str:
    return f"Unix timestamp: {int(ms // 1000)}"


class PageUpdater:
    """Page-wide time readouts outside the panel, kept on virtual time.

    ``status_time`` and ``lock_time`` are ``HH:MM``, ``lock_date`` is the
    weekday with month/day, ``detail_time`` matches the panel display and
    ``timestamp_text`` shows whole Unix seconds.
    """

    def __init__(self, clock: VirtualClock):
        self.clock = clock
        self.status_time = ""
        self.lock_time = ""
        self.lock_date = ""
        self.detail_time = ""
        self.timestamp_text = ""
        self._unsubscribe = clock.subscribe(self._on_change)

    def _on_change(self, snapshot: ClockSnapshot) -> None:
        self.refresh()

    def refresh(self) -> None:
        ms = self.clock.now()
        dt = datetime.fromtimestamp(ms / 1000.0)
        self.status_time = format_clock(dt)
        self.lock_time = format_clock(dt)
        self.lock_date = format_lock_date(dt)
        self.detail_time = format_display(dt)
        self.timestamp_text = format_unix(ms)

    def close(self) -> None:
        self._unsubscribe()
