# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Slot clock, collection id rotation and the collection scheduler."""

from opprofile.core.identity import (
    TOKEN_BYTES,
    CollectionId,
    CollectionIdManager,
    new_collection_token,
)
from opprofile.core.scheduler import CollectionScheduler, SchedulerState
from opprofile.core.slots import Clock, SystemClock, current_slot
from opprofile.core.state import (
    COLLECTION_ID_EXPIRATION_KEY,
    COLLECTION_ID_KEY,
    LAST_CHECKED_SLOT_KEY,
    NEVER_REPORTED,
    CollectionState,
    load_state,
    register_local_state_prefs,
    save_state,
)
from opprofile.core.timers import AsyncioTimerFactory, LoopTimer, Timer, TimerFactory


__all__ = (
    "COLLECTION_ID_EXPIRATION_KEY",
    "COLLECTION_ID_KEY",
    "LAST_CHECKED_SLOT_KEY",
    "NEVER_REPORTED",
    "TOKEN_BYTES",
    "AsyncioTimerFactory",
    "Clock",
    "CollectionId",
    "CollectionIdManager",
    "CollectionScheduler",
    "CollectionState",
    "LoopTimer",
    "SchedulerState",
    "SystemClock",
    "Timer",
    "TimerFactory",
    "current_slot",
    "load_state",
    "new_collection_token",
    "register_local_state_prefs",
    "save_state",
)
