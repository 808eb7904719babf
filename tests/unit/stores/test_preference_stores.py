# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Tests for preference stores."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from pydantic_core import from_json

from opprofile.core.state import (
    COLLECTION_ID_EXPIRATION_KEY,
    COLLECTION_ID_KEY,
    LAST_CHECKED_SLOT_KEY,
    CollectionState,
    load_state,
    register_local_state_prefs,
    save_state,
)
from opprofile.exceptions import PersistenceError, PreferenceError
from opprofile.stores.json_file import JsonFilePreferenceStore
from opprofile.stores.memory import InMemoryPreferenceStore


pytestmark = [pytest.mark.unit]

WHEN = datetime(2025, 3, 1, 10, 15, tzinfo=timezone(timedelta(hours=2)))


@pytest.mark.unit
class TestPreferenceStore:
    """Tests for registration, typing and observers shared by all stores."""

    def test_unregistered_key_raises(self):
        """Test reading a key that was never registered."""
        store = InMemoryPreferenceStore()
        with pytest.raises(PreferenceError, match="never registered"):
            store.get_int("missing")

    def test_wrong_kind_raises(self):
        """Test reading a key as the wrong type."""
        store = InMemoryPreferenceStore()
        store.register_int("count", 0)
        with pytest.raises(PreferenceError):
            store.get_string("count")

    def test_conflicting_registration_raises(self):
        """Test re-registering a key with another kind."""
        store = InMemoryPreferenceStore()
        store.register_int("count", 0)
        with pytest.raises(PreferenceError, match="already registered"):
            store.register_string("count", "")

    @pytest.mark.parametrize(
        ("setter", "value"),
        [("set_int", "1"), ("set_int", True), ("set_string", 1), ("set_time", "2025-01-01")],
    )
    def test_rejects_wrong_value_types(self, setter: str, value: object):
        """Test type checks on writes."""
        store = InMemoryPreferenceStore()
        store.register_int("set_int", 0)
        store.register_string("set_string", "")
        store.register_time("set_time")
        with pytest.raises(PreferenceError):
            getattr(store, setter)(setter, value)

    def test_defaults_until_written(self):
        """Test that defaults are returned for unwritten keys."""
        store = InMemoryPreferenceStore()
        store.register_int("count", -1)
        store.register_bool("flag", True)
        assert store.get_int("count") == -1
        assert store.get_bool("flag") is True

        store.set_int("count", 4)
        assert store.get_int("count") == 4

    def test_observer_called_on_change_only(self):
        """Test that observers fire on changes and not on identical writes."""
        store = InMemoryPreferenceStore()
        store.register_bool("flag", True)
        observer = MagicMock()
        store.add_observer("flag", observer)

        store.set_bool("flag", True)
        observer.assert_not_called()

        store.set_bool("flag", False)
        observer.assert_called_once_with("flag")

    def test_observer_unsubscribe(self):
        """Test removing an observer."""
        store = InMemoryPreferenceStore()
        store.register_bool("flag", True)
        observer = MagicMock()
        unsubscribe = store.add_observer("flag", observer)

        unsubscribe()
        unsubscribe()
        store.set_bool("flag", False)

        observer.assert_not_called()


@pytest.mark.unit
class TestJsonFilePreferenceStore:
    """Tests for the JSON file store."""

    def _store(self, path: Path) -> JsonFilePreferenceStore:
        store = JsonFilePreferenceStore(path)
        register_local_state_prefs(store)
        return store

    def test_missing_file_starts_empty(self, tmp_path: Path):
        """Test a store without a file on disk."""
        store = self._store(tmp_path / "state.json")
        assert load_state(store) == CollectionState()
        assert not store.path.exists()

    def test_writes_are_persisted_immediately(self, tmp_path: Path):
        """Test that each write lands on disk."""
        path = tmp_path / "nested" / "state.json"
        store = self._store(path)

        store.set_int(LAST_CHECKED_SLOT_KEY, 21)

        assert from_json(path.read_bytes()) == {LAST_CHECKED_SLOT_KEY: 21}
        assert not path.with_suffix(".json.tmp").exists()

    def test_state_survives_reopen(self, tmp_path: Path):
        """Test that a second store on the same file sees the saved state."""
        path = tmp_path / "state.json"
        state = CollectionState(
            last_checked_slot=21, collection_id="ABC", collection_id_expiration=WHEN
        )
        save_state(self._store(path), state)

        reopened = load_state(self._store(path))

        assert reopened == state
        assert reopened.collection_id_expiration == WHEN

    def test_null_time_round_trips(self, tmp_path: Path):
        """Test that the null time is stored and read back as None."""
        path = tmp_path / "state.json"
        store = self._store(path)
        store.set_time(COLLECTION_ID_EXPIRATION_KEY, WHEN)
        store.set_time(COLLECTION_ID_EXPIRATION_KEY, None)

        assert self._store(path).get_time(COLLECTION_ID_EXPIRATION_KEY) is None

    def test_corrupt_file_raises(self, tmp_path: Path):
        """Test that unparseable state is a persistence error."""
        path = tmp_path / "state.json"
        path.write_text("{not json")
        with pytest.raises(PersistenceError, match="Failed to read"):
            JsonFilePreferenceStore(path)

    def test_non_object_file_raises(self, tmp_path: Path):
        """Test that a JSON array is rejected."""
        path = tmp_path / "state.json"
        path.write_text("[1, 2]")
        with pytest.raises(PersistenceError):
            JsonFilePreferenceStore(path)

    def test_bad_time_value_raises(self, tmp_path: Path):
        """Test that a malformed timestamp is a persistence error."""
        path = tmp_path / "state.json"
        path.write_text(f'{{"{COLLECTION_ID_EXPIRATION_KEY}": "yesterday"}}')
        store = self._store(path)
        with pytest.raises(PersistenceError):
            store.get_time(COLLECTION_ID_EXPIRATION_KEY)

    @pytest.mark.parametrize(
        ("key", "raw"),
        [
            (LAST_CHECKED_SLOT_KEY, '"7"'),
            (LAST_CHECKED_SLOT_KEY, "7.5"),
            (LAST_CHECKED_SLOT_KEY, "true"),
            (COLLECTION_ID_KEY, "42"),
            (COLLECTION_ID_EXPIRATION_KEY, "5"),
        ],
    )
    def test_wrong_typed_value_fails_to_load(self, tmp_path: Path, key: str, raw: str):
        """Test that a hand-edited file with the wrong value types is a persistence error."""
        path = tmp_path / "state.json"
        path.write_text(f'{{"{key}": {raw}}}')
        store = self._store(path)

        with pytest.raises(PersistenceError, match="not a valid"):
            load_state(store)

    def test_failed_write_raises_and_rolls_back(self, tmp_path: Path):
        """Test that a write failure leaves memory consistent with disk."""
        path = tmp_path / "state.json"
        store = self._store(path)
        store.set_string(COLLECTION_ID_KEY, "ABC")

        with (
            patch("opprofile.stores.json_file.os.replace", side_effect=OSError("read-only")),
            pytest.raises(PersistenceError, match="Failed to write"),
        ):
            store.set_string(COLLECTION_ID_KEY, "XYZ")

        assert store.get_string(COLLECTION_ID_KEY) == "ABC"
        assert from_json(path.read_bytes())[COLLECTION_ID_KEY] == "ABC"

    def test_default_path_is_in_user_config_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        """Test the default state file location."""
        monkeypatch.setattr(
            "opprofile.stores.json_file.get_user_config_dir", lambda: tmp_path / "opprofile"
        )
        store = JsonFilePreferenceStore()
        assert store.path == tmp_path / "opprofile" / "local_state.json"
