"""Append-only debug log shared by the app modules."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from app import config


def log_debug(message: str) -> None:
    try:
        ts = datetime.now(timezone.utc).isoformat()
        log_path = Path(config.DEBUG_LOG_PATH)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as fh:
            fh.write(f"{ts} {message}\n")
    except Exception:
        # Logging must never interfere with app flow.
        return
