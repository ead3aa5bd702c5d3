"""Runtime settings read from the environment (and ``.env`` when present)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv  # type: ignore

from ..state.store import POSITION_KEY, STATE_KEY


@dataclass
class Settings:
    storage: str = "file"  # "file" or "memory"
    storage_path: Path = Path(".virtual_clock") / "storage.json"
    state_key: str = STATE_KEY
    position_key: str = POSITION_KEY
    patch: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        storage = (os.getenv("VIRTUAL_CLOCK_STORAGE") or "file").lower()
        if storage not in ("file", "memory"):
            raise ValueError(f"VIRTUAL_CLOCK_STORAGE must be 'file' or 'memory', got {storage!r}")
        path = os.getenv("VIRTUAL_CLOCK_STORAGE_PATH")
        return cls(
            storage=storage,
            storage_path=Path(path) if path else cls.storage_path,
            state_key=os.getenv("VIRTUAL_CLOCK_STATE_KEY") or STATE_KEY,
            position_key=os.getenv("VIRTUAL_CLOCK_POSITION_KEY") or POSITION_KEY,
            patch=os.getenv("VIRTUAL_CLOCK_PATCH") == "1",
            log_level=(os.getenv("VIRTUAL_CLOCK_LOG_LEVEL") or "INFO").upper(),
        )
