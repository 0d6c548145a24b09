"""Time sources.

Cache freshness runs on a monotonic clock so wall-clock jumps never expire or
revive entries. Responses carry wall-clock UTC stamps.
"""

import time
from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], float]

system_clock: Clock = time.monotonic


def iso_now() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2025-01-01T12:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
