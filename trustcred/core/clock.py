from __future__ import annotations

import time
from collections.abc import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds, the unit of every API timestamp."""
    return int(time.time() * 1000)
