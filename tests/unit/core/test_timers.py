# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Tests for asyncio loop timers."""

from __future__ import annotations

import asyncio

from datetime import timedelta

import pytest

from opprofile.core.timers import AsyncioTimerFactory, LoopTimer


pytestmark = [pytest.mark.unit]

TICK = timedelta(milliseconds=10)


@pytest.mark.unit
class TestLoopTimer:
    """Tests for LoopTimer."""

    @pytest.mark.asyncio
    async def test_one_shot_fires_once(self):
        """Test that a one-shot timer fires a single time."""
        calls: list[int] = []
        timer = AsyncioTimerFactory().one_shot(TICK, lambda: calls.append(1))
        timer.start()
        assert timer.is_running

        await asyncio.sleep(0.1)

        assert calls == [1]
        assert not timer.is_running

    @pytest.mark.asyncio
    async def test_one_shot_can_be_reset_after_firing(self):
        """Test that a retaining one-shot timer can be reused."""
        calls: list[int] = []
        timer = AsyncioTimerFactory().one_shot(TICK, lambda: calls.append(1))
        timer.start()
        await asyncio.sleep(0.05)
        timer.reset()
        await asyncio.sleep(0.05)

        assert calls == [1, 1]

    @pytest.mark.asyncio
    async def test_repeating_fires_until_stopped(self):
        """Test that a repeating timer keeps firing and stops cleanly."""
        calls: list[int] = []
        timer = AsyncioTimerFactory().repeating(TICK, lambda: calls.append(1))
        timer.start()
        await asyncio.sleep(0.1)
        timer.stop()
        fired = len(calls)
        await asyncio.sleep(0.05)

        assert fired >= 2
        assert len(calls) == fired
        assert not timer.is_running

    @pytest.mark.asyncio
    async def test_stop_prevents_firing(self):
        """Test that a stopped timer never fires."""
        calls: list[int] = []
        timer = AsyncioTimerFactory().one_shot(TICK, lambda: calls.append(1))
        timer.start()
        timer.stop()
        await asyncio.sleep(0.05)

        assert calls == []

    @pytest.mark.asyncio
    async def test_reset_postpones_firing(self):
        """Test that resetting restarts the countdown."""
        calls: list[int] = []
        timer = AsyncioTimerFactory().one_shot(timedelta(milliseconds=50), lambda: calls.append(1))
        timer.start()
        for _ in range(4):
            await asyncio.sleep(0.02)
            timer.reset()
        assert calls == []
        await asyncio.sleep(0.1)
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_stop_repeating_timer(self):
        """Test that a failing callback is logged and the timer keeps going."""
        calls: list[int] = []

        def callback() -> None:
            calls.append(1)
            raise RuntimeError("boom")

        timer = AsyncioTimerFactory().repeating(TICK, callback)
        timer.start()
        await asyncio.sleep(0.1)
        timer.stop()

        assert len(calls) >= 2

    def test_rejects_non_positive_delay(self):
        """Test delay validation."""
        with pytest.raises(ValueError, match="positive"):
            LoopTimer(timedelta(0), lambda: None, repeating=False)

    def test_start_requires_running_loop(self):
        """Test that starting outside a loop without an explicit loop fails."""
        timer = LoopTimer(TICK, lambda: None, repeating=False)
        with pytest.raises(RuntimeError):
            timer.start()
