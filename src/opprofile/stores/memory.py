# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Dictionary-backed preference store for tests and hosts with their own persistence."""

from __future__ import annotations

from typing import Any, override

from opprofile.stores.base import MISSING, PreferenceStore, PrefKind


class InMemoryPreferenceStore(PreferenceStore):
    """Preference store that keeps values in a dict for the life of the object."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        super().__init__()
        self._values: dict[str, Any] = dict(values or {})

    @override
    def _load_value(self, key: str, kind: PrefKind) -> Any:
        return self._values.get(key, MISSING)

    @override
    def _store_value(self, key: str, value: Any) -> None:
        self._values[key] = value

    def snapshot(self) -> dict[str, Any]:
        """Copy of every explicitly written value."""
        return dict(self._values)


__all__ = ("InMemoryPreferenceStore",)
