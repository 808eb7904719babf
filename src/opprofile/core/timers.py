# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Timers driving the collection scheduler.

The scheduler only talks to the `TimerFactory` protocol, so tests can swap in
simulated time. The asyncio implementation runs every callback on the event
loop thread, which keeps all scheduler transitions serialized.
"""

from __future__ import annotations

import asyncio
import logging

from collections.abc import Callable
from datetime import timedelta
from typing import Protocol, override


logger = logging.getLogger(__name__)

type TimerCallback = Callable[[], None]


class Timer(Protocol):
    """A restartable timer."""

    @property
    def is_running(self) -> bool:
        """Whether the timer is scheduled to fire."""
        ...

    def start(self) -> None:
        """Schedule the timer, replacing any pending firing."""
        ...

    def reset(self) -> None:
        """Restart the countdown from now with the original delay."""
        ...

    def stop(self) -> None:
        """Cancel any pending firing."""
        ...


class TimerFactory(Protocol):
    """Creates timers bound to one execution context."""

    def repeating(self, interval: timedelta, callback: TimerCallback) -> Timer:
        """A timer that fires every `interval` until stopped."""
        ...

    def one_shot(self, delay: timedelta, callback: TimerCallback) -> Timer:
        """A timer that fires once per start/reset, keeping its delay for reuse."""
        ...


class LoopTimer:
    """Timer scheduled with `loop.call_later`."""

    def __init__(
        self,
        delay: timedelta,
        callback: TimerCallback,
        *,
        repeating: bool,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        if delay <= timedelta(0):
            raise ValueError("Timer delay must be positive")
        self.delay = delay
        self.repeating = repeating
        self._callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self.stop()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay.total_seconds(), self._fire)

    def reset(self) -> None:
        self.start()

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self.repeating:
            self.start()
        try:
            self._callback()
        except Exception:
            logger.exception("Timer callback failed")

    @override
    def __repr__(self) -> str:
        kind = "repeating" if self.repeating else "one-shot"
        return f"LoopTimer({kind}, delay={self.delay}, running={self.is_running})"


class AsyncioTimerFactory:
    """Timer factory for the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def repeating(self, interval: timedelta, callback: TimerCallback) -> LoopTimer:
        return LoopTimer(interval, callback, repeating=True, loop=self._loop)

    def one_shot(self, delay: timedelta, callback: TimerCallback) -> LoopTimer:
        return LoopTimer(delay, callback, repeating=False, loop=self._loop)


__all__ = ("AsyncioTimerFactory", "LoopTimer", "Timer", "TimerCallback", "TimerFactory")
