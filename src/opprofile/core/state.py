# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Persisted collection state and its mapping onto the preference store."""

from __future__ import annotations

import logging

from datetime import datetime
from typing import Annotated, Final, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from opprofile.exceptions import OpProfileError, PersistenceError
from opprofile.stores.base import PreferenceStore


logger = logging.getLogger(__name__)

LAST_CHECKED_SLOT_KEY: Final = "opprofile.last_checked_slot"
COLLECTION_ID_KEY: Final = "opprofile.collection_id"
COLLECTION_ID_EXPIRATION_KEY: Final = "opprofile.collection_id_expiration"

NEVER_REPORTED: Final = -1


class CollectionState(BaseModel):
    """State that survives restarts.

    `collection_id` is empty exactly when `collection_id_expiration` is unset.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    last_checked_slot: Annotated[
        int, Field(ge=NEVER_REPORTED, description="Last successfully reported slot, -1 if never")
    ] = NEVER_REPORTED
    collection_id: Annotated[str, Field(description="Anonymous collection id, empty if unset")] = ""
    collection_id_expiration: Annotated[
        datetime | None, Field(description="When the collection id must be rotated")
    ] = None

    @model_validator(mode="after")
    def _check_id_pairing(self) -> Self:
        if bool(self.collection_id) != (self.collection_id_expiration is not None):
            raise ValueError("collection_id and collection_id_expiration must be set together")
        return self

    @property
    def has_collection_id(self) -> bool:
        """Whether an id has been generated."""
        return bool(self.collection_id)


def register_local_state_prefs(store: PreferenceStore) -> None:
    """Declare the persisted keys and their defaults with the host's store."""
    store.register_int(LAST_CHECKED_SLOT_KEY, NEVER_REPORTED)
    store.register_string(COLLECTION_ID_KEY, "")
    store.register_time(COLLECTION_ID_EXPIRATION_KEY, None)


def load_state(store: PreferenceStore) -> CollectionState:
    """Read the collection state from `store`.

    A half-set identifier (id without expiration or the reverse) is dropped
    so that it gets rotated on the next check.

    Raises:
        PersistenceError: The store cannot be read or holds invalid values.
    """
    try:
        last_checked_slot = store.get_int(LAST_CHECKED_SLOT_KEY)
        collection_id = store.get_string(COLLECTION_ID_KEY)
        expiration = store.get_time(COLLECTION_ID_EXPIRATION_KEY)
    except PersistenceError:
        raise
    except OpProfileError as e:
        raise PersistenceError("Failed to load collection state") from e
    if bool(collection_id) != (expiration is not None):
        logger.warning("Persisted collection id is incomplete, it will be regenerated")
        collection_id, expiration = "", None
    try:
        return CollectionState(
            last_checked_slot=max(last_checked_slot, NEVER_REPORTED),
            collection_id=collection_id,
            collection_id_expiration=expiration,
        )
    except (TypeError, ValidationError) as e:
        raise PersistenceError(
            "Persisted collection state is invalid",
            details={"errors": str(e)},
            suggestions=["Delete the local state file to reset operational profiling state."],
        ) from e


def save_state(store: PreferenceStore, state: CollectionState) -> None:
    """Write every field of `state` to `store` before returning.

    Raises:
        PersistenceError: The store cannot be written.
    """
    try:
        store.set_int(LAST_CHECKED_SLOT_KEY, state.last_checked_slot)
        store.set_string(COLLECTION_ID_KEY, state.collection_id)
        store.set_time(COLLECTION_ID_EXPIRATION_KEY, state.collection_id_expiration)
    except PersistenceError:
        raise
    except OpProfileError as e:
        raise PersistenceError("Failed to save collection state") from e


__all__ = (
    "COLLECTION_ID_EXPIRATION_KEY",
    "COLLECTION_ID_KEY",
    "LAST_CHECKED_SLOT_KEY",
    "NEVER_REPORTED",
    "CollectionState",
    "load_state",
    "register_local_state_prefs",
    "save_state",
)
