"""Handles persistent data storage for the WordQuest integration.

Uses Home Assistant's Storage helper as a device-local key/value store. Each
component owns its own top-level key namespace (progress, achievement state,
badge state, migration marker and backups, weekly analytics). Legacy keys
written by pre-2.0 releases live in the same document until migration
backs them up.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
from typing import TYPE_CHECKING, Any, Protocol

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class PersistenceError(HomeAssistantError):
    """Raised when the key/value store cannot be read or written.

    Attributes:
        key: Storage key involved, or None for whole-document operations
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        """Initialize PersistenceError.

        Args:
            message: Description of the failure
            key: Storage key involved, if any
        """
        self.key = key
        super().__init__(message)


class KeyValueStore(Protocol):
    """Minimal get/set/remove contract the managers depend on."""

    @property
    def data(self) -> dict[str, Any]:
        """Return a copy of the whole document."""

    def get(self, key: str, default: Any = None) -> Any:
        """Return a copy of the value stored under key."""

    def keys(self) -> list[str]:
        """Return all stored keys."""

    async def async_set(self, key: str, value: Any) -> None:
        """Store value under key and persist."""

    async def async_set_many(self, values: Mapping[str, Any]) -> None:
        """Store several keys and persist once."""

    async def async_remove(self, key: str) -> None:
        """Remove key and persist."""


class WordQuestStore:
    """Key/value adapter over Home Assistant's Store API.

    Reads are served from an in-memory copy of the document. Every write
    persists immediately; when persisting fails the in-memory change is
    rolled back and PersistenceError is raised so callers never observe
    state that is not on disk.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).

        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store[dict[str, Any]] = Store(
            hass, const.STORAGE_VERSION, storage_key
        )
        self._data: dict[str, Any] = {}  # In-memory data cache for quick access.

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, starts from an empty document.

        Raises:
            PersistenceError: If the storage file cannot be read.
        """
        const.LOGGER.debug("DEBUG: WordQuestStore: Loading data from storage")
        try:
            existing_data = await self._store.async_load()
        except (OSError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to load storage %s: %s", self._storage_key, err
            )
            raise PersistenceError(
                f"Failed to load storage {self._storage_key}: {err}"
            ) from err

        if existing_data is None:
            const.LOGGER.info("INFO: No existing storage found. Initializing new data")
            self._data = {}
        elif not isinstance(existing_data, dict):
            const.LOGGER.warning(
                "WARNING: Storage %s does not hold an object, starting empty",
                self._storage_key,
            )
            self._data = {}
        else:
            self._data = existing_data
            const.LOGGER.debug(
                "DEBUG: Loaded existing data from storage: %s keys",
                len(self._data),
            )

    @property
    def data(self) -> dict[str, Any]:
        """Return a deep copy of the whole document (diagnostics, backups)."""
        return copy.deepcopy(self._data)

    def get_storage_path(self) -> str:
        """Get the storage file path."""
        return self._store.path

    def get(self, key: str, default: Any = None) -> Any:
        """Return a deep copy of the value stored under key."""
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def keys(self) -> list[str]:
        """Return all stored keys."""
        return list(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    async def async_set(self, key: str, value: Any) -> None:
        """Store value under key and persist.

        Raises:
            PersistenceError: If the document cannot be saved.
        """
        await self.async_set_many({key: value})

    async def async_set_many(self, values: Mapping[str, Any]) -> None:
        """Store several keys and persist them in a single save.

        Raises:
            PersistenceError: If the document cannot be saved.
        """
        if not values:
            return
        previous = {key: self._data.get(key) for key in values}
        missing = {key for key in values if key not in self._data}
        for key, value in values.items():
            self._data[key] = copy.deepcopy(value)
        try:
            await self._async_save(list(values))
        except PersistenceError:
            for key, value in previous.items():
                if key in missing:
                    self._data.pop(key, None)
                else:
                    self._data[key] = value
            raise

    async def async_remove(self, key: str) -> None:
        """Remove key and persist. Removing a missing key is a no-op.

        Raises:
            PersistenceError: If the document cannot be saved.
        """
        if key not in self._data:
            return
        previous = self._data.pop(key)
        try:
            await self._async_save([key])
        except PersistenceError:
            self._data[key] = previous
            raise

    async def _async_save(self, keys: list[str]) -> None:
        """Save the current document, translating storage errors."""
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug("DEBUG: Data saved successfully to storage: %s", keys)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
            raise PersistenceError(f"Failed to save {keys}: {err}", keys[0]) from err
        except TypeError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s",
                err,
            )
            raise PersistenceError(f"Failed to save {keys}: {err}", keys[0]) from err
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to invalid data format: %s",
                err,
            )
            raise PersistenceError(f"Failed to save {keys}: {err}", keys[0]) from err

    async def async_delete_storage(self) -> None:
        """Delete the storage file completely from disk."""
        self._data = {}
        try:
            await self._store.async_remove()
            const.LOGGER.info(
                "INFO: Storage file removed successfully: %s",
                self._store.path,
            )
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove storage file %s: %s. Check file permissions",
                self._store.path,
                err,
            )
