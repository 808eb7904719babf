# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""JSON-file preference store.

The whole file is rewritten on every write, through a temporary file and an
atomic rename, so a crash never leaves a half-written state file behind.
"""

from __future__ import annotations

import logging
import os

from datetime import datetime
from pathlib import Path
from typing import Any, override

from pydantic_core import from_json, to_json

from opprofile.common.utils import get_user_config_dir
from opprofile.exceptions import PersistenceError
from opprofile.stores.base import MISSING, PreferenceStore, PrefKind


logger = logging.getLogger(__name__)

DEFAULT_STATE_FILENAME = "local_state.json"


class JsonFilePreferenceStore(PreferenceStore):
    """Preference store persisted to a single JSON object on disk."""

    def __init__(self, path: Path | None = None) -> None:
        """Open the store, reading any existing state file.

        Args:
            path: State file location (default: user config dir / local_state.json)

        Raises:
            PersistenceError: The file exists but cannot be read or parsed.
        """
        super().__init__()
        self.path = (path or get_user_config_dir() / DEFAULT_STATE_FILENAME).expanduser()
        self._values: dict[str, Any] = self._read()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            logger.debug("No local state file at %s, starting empty", self.path)
            return {}
        try:
            data = from_json(self.path.read_bytes())
        except (OSError, ValueError) as e:
            raise PersistenceError(
                "Failed to read local state file",
                details={"path": str(self.path)},
                suggestions=["Delete the file to reset operational profiling state."],
            ) from e
        if not isinstance(data, dict):
            raise PersistenceError(
                "Local state file does not hold a JSON object", details={"path": str(self.path)}
            )
        logger.debug("Loaded %d local state values from %s", len(data), self.path)
        return data

    def _flush(self) -> None:
        tmp_path = self.path.with_suffix(f"{self.path.suffix}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            _ = tmp_path.write_bytes(to_json(self._values, indent=2))
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(
                "Failed to write local state file", details={"path": str(self.path)}
            ) from e

    @override
    def _load_value(self, key: str, kind: PrefKind) -> Any:
        value = self._values.get(key, MISSING)
        if kind is PrefKind.TIME and isinstance(value, str):
            try:
                return datetime.fromisoformat(value)
            except ValueError as e:
                raise PersistenceError(
                    "Stored time value is not ISO 8601", details={"key": key}
                ) from e
        if value is not MISSING and not kind.accepts(value):
            raise PersistenceError(
                f"Stored value {value!r} is not a valid {kind.value} preference",
                details={"key": key, "path": str(self.path)},
                suggestions=["Delete the file to reset operational profiling state."],
            )
        return value

    @override
    def _store_value(self, key: str, value: Any) -> None:
        previous = self._values.get(key, MISSING)
        self._values[key] = value
        try:
            self._flush()
        except PersistenceError:
            # Keep memory consistent with disk
            if previous is MISSING:
                del self._values[key]
            else:
                self._values[key] = previous
            raise


__all__ = ("DEFAULT_STATE_FILENAME", "JsonFilePreferenceStore")
