from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


# PUBLIC_INTERFACE
class Clock(Protocol):
    """Source of the current instant. Implementations return aware UTC datetimes."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
