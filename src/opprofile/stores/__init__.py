# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Preference stores holding the state that survives restarts."""

from opprofile.stores.base import (
    MISSING,
    PreferenceObserver,
    PreferenceStore,
    PrefKind,
    Registration,
    Unsubscribe,
)
from opprofile.stores.json_file import DEFAULT_STATE_FILENAME, JsonFilePreferenceStore
from opprofile.stores.memory import InMemoryPreferenceStore


__all__ = (
    "DEFAULT_STATE_FILENAME",
    "MISSING",
    "InMemoryPreferenceStore",
    "JsonFilePreferenceStore",
    "PrefKind",
    "PreferenceObserver",
    "PreferenceStore",
    "Registration",
    "Unsubscribe",
)
