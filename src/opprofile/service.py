# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Host-facing operational profiling service.

Wires the preference store, the enablement gate, the reporter and the
collection scheduler together. The host registers the local state
preferences once, then calls `start()` and `stop()`; the service starts the
scheduler whenever the gate opens and the scheduler stops itself when the
gate closes.

Example:
    >>> store = JsonFilePreferenceStore()
    >>> OperationalProfilingService.register_local_state_prefs(store)
    >>> service = OperationalProfilingService.from_settings(store=store)
    >>> service.start()
    >>> ...
    >>> await service.aclose()
"""

from __future__ import annotations

import logging

from collections.abc import Iterable
from types import TracebackType
from typing import TYPE_CHECKING, Any, Self

from opprofile.config.settings import ProfilingSettings, get_profiling_settings
from opprofile.core.scheduler import CollectionScheduler
from opprofile.core.state import register_local_state_prefs
from opprofile.exceptions import InitializationError, PersistenceError
from opprofile.gate import USAGE_REPORTING_ENABLED_KEY, PreferenceEnablementGate
from opprofile.reporting.http import ClientTimeouts
from opprofile.reporting.reporter import HttpReporter
from opprofile.stores.json_file import JsonFilePreferenceStore


if TYPE_CHECKING:
    from opprofile.gate import EnablementGate
    from opprofile.reporting.reporter import Reporter
    from opprofile.stores.base import PreferenceStore, Unsubscribe

logger = logging.getLogger(__name__)


class OperationalProfilingService:
    """Owns one collection scheduler and restarts it when reporting is re-enabled."""

    def __init__(
        self,
        store: PreferenceStore,
        reporter: Reporter,
        *,
        settings: ProfilingSettings | None = None,
        gate: EnablementGate | None = None,
        **scheduler_kwargs: Any,
    ) -> None:
        """
        Initialize the service.

        Args:
            store: Preference store holding local state (keys must be registered)
            reporter: Delivers reports to the collection endpoint
            settings: Profiling settings (default: cached environment settings)
            gate: Enablement gate (default: feature flag plus consent preference)
            **scheduler_kwargs: Passed to `CollectionScheduler`, e.g. `clock` or `timers`
        """
        self.settings = settings or get_profiling_settings()
        self.store = store
        self.reporter = reporter
        self.gate = gate or PreferenceEnablementGate(store, feature_enabled=self.settings.enabled)
        self.scheduler = CollectionScheduler.from_settings(
            self.settings, store, reporter, self.gate, **scheduler_kwargs
        )
        self._unsubscribe_gate: Unsubscribe | None = None

    @staticmethod
    def register_local_state_prefs(
        store: PreferenceStore, consent_keys: Iterable[str] = (USAGE_REPORTING_ENABLED_KEY,)
    ) -> None:
        """Declare every preference the service reads with the host's store."""
        register_local_state_prefs(store)
        PreferenceEnablementGate.register_prefs(store, consent_keys)

    @classmethod
    def from_settings(
        cls,
        settings: ProfilingSettings | None = None,
        *,
        store: PreferenceStore | None = None,
        **scheduler_kwargs: Any,
    ) -> OperationalProfilingService:
        """
        Create a service reporting over HTTP to the configured endpoint.

        Raises:
            InitializationError: No collection endpoint is configured.
            PersistenceError: The local state file cannot be read.
        """
        settings = settings or get_profiling_settings()
        if settings.endpoint is None:
            raise InitializationError(
                "No collection endpoint configured",
                suggestions=["Set OPPROFILE_ENDPOINT to the collection URL."],
            )
        if store is None:
            store = JsonFilePreferenceStore(settings.state_file)
            cls.register_local_state_prefs(store)
        reporter = HttpReporter(
            settings.endpoint, timeouts=ClientTimeouts.uniform(settings.request_timeout_seconds)
        )
        return cls(store, reporter, settings=settings, **scheduler_kwargs)

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    def start(self) -> bool:
        """Start reporting now if allowed, and whenever the gate opens later.

        Returns:
            True if the scheduler is running after the call.

        Raises:
            PersistenceError: Persisted state could not be read or written.
        """
        if self._unsubscribe_gate is None:
            self._unsubscribe_gate = self.gate.subscribe(self._on_gate_changed)
        if self.scheduler.is_running:
            return True
        try:
            return self.scheduler.start()
        except PersistenceError:
            self._unsubscribe_gate()
            self._unsubscribe_gate = None
            raise

    def stop(self) -> None:
        """Stop reporting and stop following the gate. Idempotent."""
        if self._unsubscribe_gate is not None:
            self._unsubscribe_gate()
            self._unsubscribe_gate = None
        self.scheduler.stop()

    def _on_gate_changed(self, enabled: bool) -> None:
        if not enabled or self.scheduler.is_running:
            return
        try:
            _ = self.scheduler.start()
        except PersistenceError:
            logger.exception("Could not restart operational profiling")

    async def aclose(self) -> None:
        """Stop, let any report in flight finish, and close the reporter."""
        self.stop()
        await self.scheduler.wait_for_report()
        if (aclose := getattr(self.reporter, "aclose", None)) is not None:
            await aclose()

    async def __aenter__(self) -> Self:
        """Async context manager entry; starts the service."""
        _ = self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        await self.aclose()


__all__ = ("OperationalProfilingService",)
