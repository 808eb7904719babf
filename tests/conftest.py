# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0

"""Global pytest configuration and fixtures for opprofile tests."""

from __future__ import annotations

import asyncio

from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from opprofile.config.settings import reset_profiling_settings
from opprofile.core.state import register_local_state_prefs
from opprofile.gate import FlagEnablementGate
from opprofile.stores.memory import InMemoryPreferenceStore


# ===========================================================================
# *                    Simulated time
# ===========================================================================

LOCAL_TZ = timezone(timedelta(hours=2))


class SimulatedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, when: datetime) -> None:
        self._now = when

    def advance(self, delta: timedelta) -> None:
        self._now += delta


class SimulatedTimer:
    """Timer firing when `SimulatedTimerFactory.advance` passes its due time."""

    def __init__(
        self, factory: SimulatedTimerFactory, delay: timedelta, callback: Any, *, repeating: bool
    ) -> None:
        self._factory = factory
        self.delay = delay
        self.callback = callback
        self.repeating = repeating
        self.due: datetime | None = None
        self.fired = 0

    @property
    def is_running(self) -> bool:
        return self.due is not None

    def start(self) -> None:
        self.due = self._factory.clock.now() + self.delay

    def reset(self) -> None:
        self.start()

    def stop(self) -> None:
        self.due = None

    def fire(self) -> None:
        self.fired += 1
        self.due = self._factory.clock.now() + self.delay if self.repeating else None
        self.callback()


class SimulatedTimerFactory:
    """Timer factory sharing a `SimulatedClock`."""

    def __init__(self, clock: SimulatedClock) -> None:
        self.clock = clock
        self.timers: list[SimulatedTimer] = []

    def repeating(self, interval: timedelta, callback: Any) -> SimulatedTimer:
        timer = SimulatedTimer(self, interval, callback, repeating=True)
        self.timers.append(timer)
        return timer

    def one_shot(self, delay: timedelta, callback: Any) -> SimulatedTimer:
        timer = SimulatedTimer(self, delay, callback, repeating=False)
        self.timers.append(timer)
        return timer

    @property
    def running(self) -> list[SimulatedTimer]:
        return [timer for timer in self.timers if timer.is_running]

    def advance(self, delta: timedelta) -> None:
        """Move time forward, firing due timers in order."""
        target = self.clock.now() + delta
        while True:
            due = [timer for timer in self.timers if timer.due is not None and timer.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)  # type: ignore[arg-type,return-value]
            self.clock.set(timer.due)  # type: ignore[arg-type]
            timer.fire()
        self.clock.set(target)


# ===========================================================================
# *                    Reporter double
# ===========================================================================


class RecordingReporter:
    """Reporter that records submissions.

    With `hold=True` each submission waits until `release()` resolves it.
    """

    def __init__(self, *, success: bool = True, hold: bool = False) -> None:
        self.success = success
        self.hold = hold
        self.error: Exception | None = None
        self.submissions: list[tuple[bytes, str]] = []
        self.pending: list[asyncio.Future[bool]] = []

    async def submit(self, payload: bytes, content_type: str) -> bool:
        self.submissions.append((payload, content_type))
        if self.error is not None:
            raise self.error
        if self.hold:
            future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
            self.pending.append(future)
            return await future
        return self.success

    def release(self, success: bool = True) -> None:
        self.pending.pop(0).set_result(success)

    @property
    def payloads(self) -> list[dict[str, Any]]:
        from pydantic_core import from_json

        return [from_json(payload) for payload, _ in self.submissions]


# ===========================================================================
# *                    Fixtures
# ===========================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep OPPROFILE_* variables from the host out of tests."""
    import os

    for name in list(os.environ):
        if name.startswith("OPPROFILE_"):
            monkeypatch.delenv(name)
    reset_profiling_settings()
    yield
    reset_profiling_settings()


@pytest.fixture
def start_time() -> datetime:
    """Day 1, 10:15 local time."""
    return datetime(2025, 3, 1, 10, 15, tzinfo=LOCAL_TZ)


@pytest.fixture
def clock(start_time: datetime) -> SimulatedClock:
    return SimulatedClock(start_time)


@pytest.fixture
def timers(clock: SimulatedClock) -> SimulatedTimerFactory:
    return SimulatedTimerFactory(clock)


@pytest.fixture
def store() -> InMemoryPreferenceStore:
    store = InMemoryPreferenceStore()
    register_local_state_prefs(store)
    return store


@pytest.fixture
def gate() -> FlagEnablementGate:
    return FlagEnablementGate(enabled=True)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
