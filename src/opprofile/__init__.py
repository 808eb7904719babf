# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""opprofile: anonymous, slot-based operational profile reporting."""

from opprofile._version import __version__
from opprofile.config import ProfilingSettings, get_profiling_settings
from opprofile.core import (
    CollectionId,
    CollectionIdManager,
    CollectionScheduler,
    CollectionState,
    SchedulerState,
    current_slot,
    register_local_state_prefs,
)
from opprofile.exceptions import (
    ConfigurationError,
    InitializationError,
    OpProfileError,
    PersistenceError,
    PreferenceError,
    SchedulerStateError,
)
from opprofile.gate import EnablementGate, FlagEnablementGate, PreferenceEnablementGate
from opprofile.reporting import HttpReporter, ReportPayload, Reporter
from opprofile.service import OperationalProfilingService
from opprofile.stores import InMemoryPreferenceStore, JsonFilePreferenceStore, PreferenceStore


__all__ = (
    "CollectionId",
    "CollectionIdManager",
    "CollectionScheduler",
    "CollectionState",
    "ConfigurationError",
    "EnablementGate",
    "FlagEnablementGate",
    "HttpReporter",
    "InMemoryPreferenceStore",
    "InitializationError",
    "JsonFilePreferenceStore",
    "OpProfileError",
    "OperationalProfilingService",
    "PersistenceError",
    "PreferenceEnablementGate",
    "PreferenceError",
    "PreferenceStore",
    "ProfilingSettings",
    "ReportPayload",
    "Reporter",
    "SchedulerState",
    "SchedulerStateError",
    "__version__",
    "current_slot",
    "get_profiling_settings",
    "register_local_state_prefs",
)
