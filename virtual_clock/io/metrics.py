"""Metrics instrumentation."""

from __future__ import annotations

from typing import Any, Optional

try:  # pragma: no cover - optional dependency
    from prometheus_client import Counter as _PromCounter
except ImportError:  # pragma: no cover
    _PromCounter = None  # type: ignore

mutations_total: Optional[Any]
persist_failures_total: Optional[Any]
listener_errors_total: Optional[Any]
if _PromCounter is not None:
    mutations_total = _PromCounter(
        "virtual_clock_mutations_total", "Clock mutations applied", ["operation"]
    )
    persist_failures_total = _PromCounter(
        "virtual_clock_persist_failures_total", "Failed writes to clock storage"
    )
    listener_errors_total = _PromCounter(
        "virtual_clock_listener_errors_total", "Listener calls that raised"
    )
else:
    mutations_total = None
    persist_failures_total = None
    listener_errors_total = None


def inc_mutations(operation: str) -> None:
    if mutations_total is not None:
        mutations_total.labels(operation=operation).inc()


def inc_persist_failures(n: int = 1) -> None:
    if persist_failures_total is not None:
        persist_failures_total.inc(n)


def inc_listener_errors(n: int = 1) -> None:
    if listener_errors_total is not None:
        listener_errors_total.inc(n)
