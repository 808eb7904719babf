# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Collection slot scheduler.

Decides when a collection slot is evaluated and reports each slot at most
once. Two timers drive it: a repeating slot-boundary timer ticking every half
slot, and a retaining one-shot trigger timer that every tick resets. Only the
trigger firing evaluates the slot.

States:
    STOPPED: no timers armed.
    ARMED: timers running, nothing in flight.
    REPORTING: one report in flight; further triggers are ignored.

All transitions run on the event loop thread, so no locking is involved.
`last_checked_slot` advances only after the endpoint accepts a report and is
persisted before the completion callback returns. A crash can therefore cause
a missed slot but never a duplicate one.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from collections.abc import Callable
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING

from opprofile.core.identity import CollectionIdManager, new_collection_token
from opprofile.core.slots import Clock, SystemClock, current_slot
from opprofile.core.state import CollectionState, load_state, save_state
from opprofile.core.timers import AsyncioTimerFactory, Timer, TimerFactory
from opprofile.exceptions import PersistenceError, SchedulerStateError
from opprofile.reporting.payload import CONTENT_TYPE, ReportPayload
from opprofile.reporting.platform import get_platform_identifier


if TYPE_CHECKING:
    from opprofile.config.settings import ProfilingSettings
    from opprofile.gate import EnablementGate
    from opprofile.reporting.reporter import Reporter
    from opprofile.stores.base import PreferenceStore, Unsubscribe

logger = logging.getLogger(__name__)


class SchedulerState(Enum):
    """Lifecycle state of a `CollectionScheduler`."""

    STOPPED = "stopped"
    ARMED = "armed"
    REPORTING = "reporting"


class CollectionScheduler:
    """Reports the current collection slot at most once per slot."""

    def __init__(
        self,
        store: PreferenceStore,
        reporter: Reporter,
        gate: EnablementGate,
        *,
        slot_size_minutes: int = 30,
        trigger_delay: timedelta = timedelta(minutes=5),
        collection_id_lifetime: timedelta = timedelta(days=1),
        platform: str | None = None,
        clock: Clock | None = None,
        timers: TimerFactory | None = None,
        token_factory: Callable[[], str] = new_collection_token,
    ) -> None:
        if slot_size_minutes <= 0:
            raise ValueError("slot_size_minutes must be positive")
        if trigger_delay >= timedelta(minutes=slot_size_minutes / 2):
            raise ValueError("trigger_delay must be shorter than the half-slot tick interval")
        self._store = store
        self._reporter = reporter
        self._gate = gate
        self.slot_size_minutes = slot_size_minutes
        self.trigger_delay = trigger_delay
        self.collection_id_lifetime = collection_id_lifetime
        self.platform = platform or get_platform_identifier()
        self._clock = clock or SystemClock()
        self._timers = timers or AsyncioTimerFactory()
        self._token_factory = token_factory

        self._state = SchedulerState.STOPPED
        self._collection_state: CollectionState | None = None
        self._ids: CollectionIdManager | None = None
        self._slot_timer: Timer | None = None
        self._trigger_timer: Timer | None = None
        self._unsubscribe_gate: Unsubscribe | None = None
        self._pending_slot: int | None = None
        self._report_task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: ProfilingSettings,
        store: PreferenceStore,
        reporter: Reporter,
        gate: EnablementGate,
        **kwargs,
    ) -> CollectionScheduler:
        """Create a scheduler configured from `settings`."""
        return cls(
            store,
            reporter,
            gate,
            slot_size_minutes=settings.collection_slot_size_minutes,
            trigger_delay=settings.trigger_delay,
            collection_id_lifetime=settings.collection_id_lifetime,
            platform=settings.platform,
            **kwargs,
        )

    # ---------------------------------------------------------------------------
    # Introspection
    # ---------------------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is not SchedulerState.STOPPED

    @property
    def last_checked_slot(self) -> int | None:
        """Last reported slot, or None before the first start."""
        return None if self._collection_state is None else self._collection_state.last_checked_slot

    @property
    def pending_slot(self) -> int | None:
        """Slot of the report in flight."""
        return self._pending_slot

    @property
    def collection_id(self) -> str | None:
        current = None if self._ids is None else self._ids.current
        return None if current is None else current.value

    @property
    def slot_tick_interval(self) -> timedelta:
        return timedelta(minutes=self.slot_size_minutes / 2)

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------

    def start(self) -> bool:
        """Load persisted state, make sure the collection id is valid, and arm the timers.

        Returns:
            True if the timers were armed, False if the gate is disabled.

        Raises:
            SchedulerStateError: The scheduler is already running.
            PersistenceError: Persisted state could not be read or written.
        """
        if self._state is not SchedulerState.STOPPED or self._slot_timer is not None:
            raise SchedulerStateError(
                "Scheduler is already running", details={"state": self._state.value}
            )
        if not self._gate.is_enabled():
            logger.info("Operational profiling is disabled, not starting")
            return False

        collection_state = load_state(self._store)
        ids = CollectionIdManager(
            self._store,
            collection_state,
            self.collection_id_lifetime,
            token_factory=self._token_factory,
        )
        ids.ensure_valid(self._clock.now())
        self._collection_state = collection_state
        self._ids = ids

        self._unsubscribe_gate = self._gate.subscribe(self._on_gate_changed)
        self._trigger_timer = self._timers.one_shot(self.trigger_delay, self.on_trigger)
        self._slot_timer = self._timers.repeating(self.slot_tick_interval, self._on_slot_tick)
        self._trigger_timer.start()
        self._slot_timer.start()
        self._state = SchedulerState.ARMED
        logger.info(
            "Operational profiling started (slot size %d minutes, last reported slot %d)",
            self.slot_size_minutes,
            collection_state.last_checked_slot,
        )
        return True

    def stop(self) -> None:
        """Cancel both timers. Safe to call when already stopped.

        A report already in flight still records its success when it
        completes, but the timers stay down.
        """
        for timer in (self._slot_timer, self._trigger_timer):
            if timer is not None:
                timer.stop()
        self._slot_timer = None
        self._trigger_timer = None
        if self._unsubscribe_gate is not None:
            self._unsubscribe_gate()
            self._unsubscribe_gate = None
        if self._state is not SchedulerState.STOPPED:
            logger.info("Operational profiling stopped")
        self._state = SchedulerState.STOPPED

    async def wait_for_report(self) -> None:
        """Wait until the report in flight, if any, has completed."""
        if (task := self._report_task) is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # ---------------------------------------------------------------------------
    # Transitions
    # ---------------------------------------------------------------------------

    def _on_gate_changed(self, enabled: bool) -> None:
        if not enabled:
            logger.debug("Enablement gate closed, stopping")
            self.stop()

    def _on_slot_tick(self) -> None:
        if self._trigger_timer is not None:
            self._trigger_timer.reset()

    def on_trigger(self) -> None:
        """Evaluate the current slot and report it if it has not been reported yet."""
        if self._state is not SchedulerState.ARMED:
            return
        if self._report_task is not None and not self._report_task.done():
            # Left over from before a restart
            return
        assert self._collection_state is not None  # noqa: S101
        assert self._ids is not None  # noqa: S101

        now = self._clock.now()
        slot = current_slot(now, self.slot_size_minutes)
        if slot == self._collection_state.last_checked_slot:
            logger.debug("Slot %d already reported", slot)
            return

        try:
            collection_id = self._ids.ensure_valid(now)
        except PersistenceError:
            logger.exception("Could not persist a rotated collection id, skipping slot %d", slot)
            return

        payload = ReportPayload(
            collection_id=collection_id.value, platform=self.platform, collection_slot=slot
        )
        self._pending_slot = slot
        self._state = SchedulerState.REPORTING
        logger.debug("Reporting collection slot %d", slot)
        self._report_task = asyncio.ensure_future(self._submit(payload))

    async def _submit(self, payload: ReportPayload) -> None:
        try:
            success = await self._reporter.submit(payload.to_bytes(), CONTENT_TYPE)
        except asyncio.CancelledError:
            self.on_report_complete(False)
            raise
        except Exception:
            logger.exception("Reporter raised while submitting slot %d", payload.collection_slot)
            success = False
        self.on_report_complete(success)

    def on_report_complete(self, success: bool) -> None:
        """Record the outcome of the report in flight.

        On success the reported slot becomes `last_checked_slot` and is
        persisted. Failures leave state untouched so a later trigger retries.
        """
        slot, self._pending_slot = self._pending_slot, None
        self._report_task = None
        if success and slot is not None and self._collection_state is not None:
            self._collection_state.last_checked_slot = slot
            try:
                save_state(self._store, self._collection_state)
            except PersistenceError:
                logger.exception("Could not persist reported slot %d", slot)
            else:
                logger.info("Reported collection slot %d", slot)
        elif slot is not None:
            logger.debug("Report for slot %d failed, will retry in a later cycle", slot)
        if self._state is SchedulerState.REPORTING:
            self._state = SchedulerState.ARMED


__all__ = ("CollectionScheduler", "SchedulerState")
