# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Collection slot clock.

A slot is a fixed-size window of local time. Slot indices count up from the
first minute of the month and are recomputed on every evaluation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, override, runtime_checkable

from opprofile.config.settings import MINUTES_PER_DAY


@runtime_checkable
class Clock(Protocol):
    """Source of the current wall-clock time."""

    def now(self) -> datetime:
        """Current local time."""
        ...


class SystemClock:
    """Clock backed by the system's local time, timezone-aware."""

    def now(self) -> datetime:
        """Current local time with the local UTC offset attached."""
        return datetime.now().astimezone()

    @override
    def __repr__(self) -> str:
        return "SystemClock()"


def current_slot(now: datetime, slot_size_minutes: int) -> int:
    """Index of the collection slot containing `now`.

    Uses the day-of-month, hour and minute of `now` as given (callers pass
    local time). Slot sizes that do not divide a day evenly are accepted but
    produce a short final slot each day.

    Raises:
        ValueError: `slot_size_minutes` is not positive.
    """
    if slot_size_minutes <= 0:
        raise ValueError(f"slot_size_minutes must be positive, got {slot_size_minutes}")
    minute_of_month = (now.day - 1) * MINUTES_PER_DAY + now.hour * 60 + now.minute
    return minute_of_month // slot_size_minutes


__all__ = ("Clock", "SystemClock", "current_slot")
