# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Typed key-value preference store.

Keys must be registered with a kind and a default before they are read or
written, the same way a host's local-state registry works. Observers are
notified only when a stored value actually changes.
"""

from __future__ import annotations

import abc
import logging

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Final

from opprofile.exceptions import PreferenceError


logger = logging.getLogger(__name__)

type PreferenceObserver = Callable[[str], None]
type Unsubscribe = Callable[[], None]


class PrefKind(Enum):
    """Kind of value stored under a preference key."""

    INT = "int"
    STRING = "string"
    TIME = "time"
    BOOL = "bool"

    def accepts(self, value: Any) -> bool:
        """Whether `value` may be stored under a key of this kind."""
        match self:
            case PrefKind.INT:
                return isinstance(value, int) and not isinstance(value, bool)
            case PrefKind.STRING:
                return isinstance(value, str)
            case PrefKind.TIME:
                return value is None or isinstance(value, datetime)
            case PrefKind.BOOL:
                return isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class Registration:
    """A registered preference key."""

    kind: PrefKind
    default: Any


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing()
"""Returned by backends for keys that have never been written."""


class PreferenceStore(abc.ABC):
    """Base class for preference stores.

    Subclasses only decide where raw values live; registration, type checks
    and change notification happen here.
    """

    def __init__(self) -> None:
        self._registrations: dict[str, Registration] = {}
        self._observers: dict[str, list[PreferenceObserver]] = {}

    # ---------------------------------------------------------------------------
    # Registration
    # ---------------------------------------------------------------------------

    def register_int(self, key: str, default: int) -> None:
        """Register an integer preference."""
        self._register(key, PrefKind.INT, default)

    def register_string(self, key: str, default: str = "") -> None:
        """Register a string preference."""
        self._register(key, PrefKind.STRING, default)

    def register_time(self, key: str, default: datetime | None = None) -> None:
        """Register a time preference. `None` is the null time."""
        self._register(key, PrefKind.TIME, default)

    def register_bool(self, key: str, default: bool) -> None:
        """Register a boolean preference."""
        self._register(key, PrefKind.BOOL, default)

    def is_registered(self, key: str) -> bool:
        """Whether `key` has been registered."""
        return key in self._registrations

    def _register(self, key: str, kind: PrefKind, default: Any) -> None:
        if not kind.accepts(default):
            raise PreferenceError(
                f"Default {default!r} is not a valid {kind.value} preference",
                details={"key": key},
            )
        if (existing := self._registrations.get(key)) is not None:
            if existing.kind is not kind:
                raise PreferenceError(
                    f"Preference already registered as {existing.kind.value}",
                    details={"key": key},
                )
            return
        self._registrations[key] = Registration(kind=kind, default=default)

    # ---------------------------------------------------------------------------
    # Typed access
    # ---------------------------------------------------------------------------

    def get_int(self, key: str) -> int:
        """Read an integer preference."""
        return self._get(key, PrefKind.INT)

    def set_int(self, key: str, value: int) -> None:
        """Write an integer preference."""
        self._set(key, PrefKind.INT, value)

    def get_string(self, key: str) -> str:
        """Read a string preference."""
        return self._get(key, PrefKind.STRING)

    def set_string(self, key: str, value: str) -> None:
        """Write a string preference."""
        self._set(key, PrefKind.STRING, value)

    def get_time(self, key: str) -> datetime | None:
        """Read a time preference."""
        return self._get(key, PrefKind.TIME)

    def set_time(self, key: str, value: datetime | None) -> None:
        """Write a time preference."""
        self._set(key, PrefKind.TIME, value)

    def get_bool(self, key: str) -> bool:
        """Read a boolean preference."""
        return self._get(key, PrefKind.BOOL)

    def set_bool(self, key: str, value: bool) -> None:
        """Write a boolean preference."""
        self._set(key, PrefKind.BOOL, value)

    def _registration(self, key: str, kind: PrefKind) -> Registration:
        try:
            registration = self._registrations[key]
        except KeyError:
            raise PreferenceError(
                "Preference was never registered",
                details={"key": key},
                suggestions=["Register local state preferences before starting the service."],
            ) from None
        if registration.kind is not kind:
            raise PreferenceError(
                f"Preference is a {registration.kind.value}, not a {kind.value}",
                details={"key": key},
            )
        return registration

    def _get(self, key: str, kind: PrefKind) -> Any:
        registration = self._registration(key, kind)
        value = self._load_value(key, kind)
        return registration.default if value is MISSING else value

    def _set(self, key: str, kind: PrefKind, value: Any) -> None:
        self._registration(key, kind)
        if not kind.accepts(value):
            raise PreferenceError(
                f"{value!r} is not a valid {kind.value} preference", details={"key": key}
            )
        previous = self._get(key, kind)
        self._store_value(key, value)
        if previous != value:
            self._notify(key)

    # ---------------------------------------------------------------------------
    # Observers
    # ---------------------------------------------------------------------------

    def add_observer(self, key: str, callback: PreferenceObserver) -> Unsubscribe:
        """Call `callback(key)` whenever the value under `key` changes.

        Returns:
            A callable that removes the observer. Safe to call more than once.
        """
        observers = self._observers.setdefault(key, [])
        observers.append(callback)

        def unsubscribe() -> None:
            if callback in observers:
                observers.remove(callback)

        return unsubscribe

    def _notify(self, key: str) -> None:
        # Copy: observers may unsubscribe while being notified
        for callback in tuple(self._observers.get(key, ())):
            callback(key)

    # ---------------------------------------------------------------------------
    # Backend hooks
    # ---------------------------------------------------------------------------

    @abc.abstractmethod
    def _load_value(self, key: str, kind: PrefKind) -> Any:
        """Return the stored value for `key`, or `MISSING`."""

    @abc.abstractmethod
    def _store_value(self, key: str, value: Any) -> None:
        """Durably store `value` under `key` before returning."""


__all__ = (
    "MISSING",
    "PrefKind",
    "PreferenceObserver",
    "PreferenceStore",
    "Registration",
    "Unsubscribe",
)
