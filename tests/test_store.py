"""Tests for the WordQuest key/value store."""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

from homeassistant.core import HomeAssistant
import pytest

from custom_components.wordquest import const
from custom_components.wordquest.store import PersistenceError, WordQuestStore

from tests.helpers import seed_storage, stored_document


async def test_initialize_empty(hass: HomeAssistant, hass_storage: dict[str, Any]) -> None:
    """A missing storage file starts an empty document."""
    store = WordQuestStore(hass)

    await store.async_initialize()

    assert store.keys() == []
    assert store.get("missing", "fallback") == "fallback"


async def test_initialize_loads_existing(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    """Existing documents, including legacy keys, are loaded as-is."""
    seed_storage(hass_storage, {"userProgress": {"wordsLearned": 3}})
    store = WordQuestStore(hass)

    await store.async_initialize()

    assert "userProgress" in store
    assert store.get("userProgress") == {"wordsLearned": 3}


async def test_get_returns_copies(store: WordQuestStore) -> None:
    """Mutating a returned value does not change the store."""
    await store.async_set(const.DATA_PROGRESS, {"words_learned": 1})

    value = store.get(const.DATA_PROGRESS)
    value["words_learned"] = 99

    assert store.get(const.DATA_PROGRESS) == {"words_learned": 1}


async def test_writes_are_persisted(
    store: WordQuestStore, hass_storage: dict[str, Any]
) -> None:
    """Every write reaches storage."""
    await store.async_set_many({"a": 1, "b": 2})
    await store.async_remove("a")
    await store.async_remove("never-there")

    assert stored_document(hass_storage) == {"b": 2}


async def test_failed_save_rolls_back(store: WordQuestStore) -> None:
    """A failed save leaves the in-memory document unchanged."""
    await store.async_set("kept", {"value": 1})

    with (
        patch.object(store._store, "async_save", side_effect=OSError("disk full")),
        pytest.raises(PersistenceError) as err,
    ):
        await store.async_set_many({"kept": {"value": 2}, "new": True})

    assert err.value.key == "kept"
    assert store.get("kept") == {"value": 1}
    assert "new" not in store


async def test_failed_remove_restores_key(store: WordQuestStore) -> None:
    """A failed remove keeps the key."""
    await store.async_set("kept", 1)

    with (
        patch.object(store._store, "async_save", side_effect=OSError("read-only")),
        pytest.raises(PersistenceError),
    ):
        await store.async_remove("kept")

    assert store.get("kept") == 1


async def test_non_serializable_value(store: WordQuestStore) -> None:
    """Serialization errors surface as PersistenceError."""
    with (
        patch.object(store._store, "async_save", side_effect=TypeError("set")),
        pytest.raises(PersistenceError),
    ):
        await store.async_set("bad", {1, 2})

    assert "bad" not in store


async def test_delete_storage(
    store: WordQuestStore, hass_storage: dict[str, Any]
) -> None:
    """Deleting storage empties the document and removes the file."""
    await store.async_set("a", 1)

    await store.async_delete_storage()

    assert store.keys() == []
    assert const.STORAGE_KEY not in hass_storage
