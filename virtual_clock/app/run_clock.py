"""Manual demo: prints the virtual clock panel once per second."""

from __future__ import annotations

import argparse
import time

from .config import Settings
from .main import activate, build_position_store, shutdown
from .panel import ControlPanel, PageUpdater


def main(argv=None):  # pragma: no cover - manual run
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--ticks", type=int, default=5)
    parser.add_argument("--speed", type=float, default=None)
    parser.add_argument("--reset", action="store_true")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    clock = activate(settings)
    panel = ControlPanel(clock, positions=build_position_store(settings))
    page = PageUpdater(clock)
    if args.reset:
        panel.reset()
    if args.speed is not None:
        clock.set_speed(args.speed)
    try:
        for _ in range(args.ticks):
            panel.refresh()
            page.refresh()
            print(f"{panel.current_text}  {panel.speed_text}  {page.timestamp_text}")
            time.sleep(1.0)
    finally:
        panel.close()
        page.close()
        shutdown()


if __name__ == "__main__":  # pragma: no cover
    main()
