# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Anonymous collection id rotation.

The collection id ties reports together only for a fixed lifetime. Once it
expires a fresh random id replaces it, so reports from before and after the
rotation cannot be linked.
"""

from __future__ import annotations

import logging
import secrets

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from opprofile.core.state import CollectionState, save_state
from opprofile.stores.base import PreferenceStore


logger = logging.getLogger(__name__)

TOKEN_BYTES = 16


def new_collection_token() -> str:
    """Generate a 128-bit random token as 32 uppercase hex characters."""
    return secrets.token_hex(TOKEN_BYTES).upper()


class CollectionId(BaseModel):
    """A collection id and the moment it stops being valid."""

    model_config = ConfigDict(frozen=True)

    value: Annotated[str, Field(min_length=1, description="Opaque uppercase token")]
    expiration: Annotated[datetime, Field(description="Absolute expiration time")]

    def is_expired(self, now: datetime) -> bool:
        """Whether `now` is past the expiration."""
        return now > self.expiration


class CollectionIdManager:
    """Owns the collection id fields of a `CollectionState`.

    Every change is written through to the preference store before the call
    returns; store failures propagate to the caller.
    """

    def __init__(
        self,
        store: PreferenceStore,
        state: CollectionState,
        lifetime: timedelta,
        *,
        token_factory: Callable[[], str] = new_collection_token,
    ) -> None:
        if lifetime <= timedelta(0):
            raise ValueError("Collection id lifetime must be positive")
        self._store = store
        self._state = state
        self._lifetime = lifetime
        self._token_factory = token_factory

    @property
    def current(self) -> CollectionId | None:
        """The current id, or None before the first `ensure_valid`."""
        if not self._state.collection_id or self._state.collection_id_expiration is None:
            return None
        return CollectionId(
            value=self._state.collection_id, expiration=self._state.collection_id_expiration
        )

    def needs_rotation(self, now: datetime) -> bool:
        """Whether the id is unset or expired at `now`."""
        current = self.current
        return current is None or current.is_expired(now)

    def ensure_valid(self, now: datetime) -> CollectionId:
        """Return a collection id valid at `now`, rotating it if needed.

        Raises:
            PersistenceError: A rotated id could not be saved.
        """
        if self.needs_rotation(now):
            return self.rotate(now)
        current = self.current
        assert current is not None  # noqa: S101
        return current

    def rotate(self, now: datetime) -> CollectionId:
        """Replace the id unconditionally and persist the new state."""
        token = self._token_factory().upper()
        expiration = now + self._lifetime
        save_state(
            self._store,
            self._state.model_copy(
                update={"collection_id": token, "collection_id_expiration": expiration}
            ),
        )
        self._state.collection_id = token
        self._state.collection_id_expiration = expiration
        logger.debug("Rotated collection id, valid until %s", expiration.isoformat())
        return CollectionId(value=token, expiration=expiration)


__all__ = ("TOKEN_BYTES", "CollectionId", "CollectionIdManager", "new_collection_token")
