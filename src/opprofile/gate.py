# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Enablement gates.

A gate answers whether operational profiling may run right now and notifies
subscribers when that answer may have changed. Reporting requires both the
feature flag and the user's consent preference(s).
"""

from __future__ import annotations

import logging

from collections.abc import Callable, Iterable
from typing import Final, Protocol, runtime_checkable

from opprofile.stores.base import PreferenceStore, Unsubscribe


logger = logging.getLogger(__name__)

USAGE_REPORTING_ENABLED_KEY: Final = "opprofile.usage_reporting_enabled"

type GateListener = Callable[[bool], None]


@runtime_checkable
class EnablementGate(Protocol):
    """Boolean switch for the reporting loop."""

    def is_enabled(self) -> bool:
        """Whether reporting is currently allowed."""
        ...

    def subscribe(self, callback: GateListener) -> Unsubscribe:
        """Call `callback(enabled)` on every change notification."""
        ...


class FlagEnablementGate:
    """Gate holding a single in-process flag."""

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled
        self._listeners: list[GateListener] = []

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        """Change the flag and notify subscribers."""
        self._enabled = enabled
        for callback in tuple(self._listeners):
            callback(enabled)

    def subscribe(self, callback: GateListener) -> Unsubscribe:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe


class PreferenceEnablementGate:
    """Gate combining a feature flag with boolean consent preferences.

    Enabled only when the feature flag is on and every consent key is true.
    """

    def __init__(
        self,
        store: PreferenceStore,
        *,
        consent_keys: Iterable[str] = (USAGE_REPORTING_ENABLED_KEY,),
        feature_enabled: bool = True,
    ) -> None:
        self._store = store
        self.consent_keys = tuple(consent_keys)
        self.feature_enabled = feature_enabled

    @staticmethod
    def register_prefs(
        store: PreferenceStore,
        consent_keys: Iterable[str] = (USAGE_REPORTING_ENABLED_KEY,),
        *,
        default: bool = True,
    ) -> None:
        """Register the consent keys this gate reads."""
        for key in consent_keys:
            store.register_bool(key, default)

    def is_enabled(self) -> bool:
        if not self.feature_enabled:
            return False
        return all(self._store.get_bool(key) for key in self.consent_keys)

    def subscribe(self, callback: GateListener) -> Unsubscribe:
        def on_preference_changed(key: str) -> None:
            enabled = self.is_enabled()
            logger.debug("Consent preference %s changed, reporting enabled: %s", key, enabled)
            callback(enabled)

        unsubscribers = [
            self._store.add_observer(key, on_preference_changed) for key in self.consent_keys
        ]

        def unsubscribe() -> None:
            for remove in unsubscribers:
                remove()

        return unsubscribe


__all__ = (
    "USAGE_REPORTING_ENABLED_KEY",
    "EnablementGate",
    "FlagEnablementGate",
    "GateListener",
    "PreferenceEnablementGate",
)
