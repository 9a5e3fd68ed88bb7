"""Time utilities."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def current_time_ms() -> int:
    return int(time.monotonic() * 1000)


def elapsed_ms(start_time_ms: int) -> int:
    return max(0, current_time_ms() - start_time_ms)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today_key() -> str:
    """Date key (YYYY-MM-DD, UTC) used for daily extraction counters."""
    return utc_now().date().isoformat()
