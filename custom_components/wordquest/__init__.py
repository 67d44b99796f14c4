# File: __init__.py
"""Initialization file for the WordQuest integration.

Handles setting up the integration, including loading the storage document,
running the one-time legacy migration, and wiring the coordinator's event
bus to the Home Assistant bus.

Key Features:
- Config entry setup and unload support.
- Legacy data migration on start (configurable).
- Engine events re-fired as ``wordquest_<event_type>``.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import const
from .coordinator import WordQuestCoordinator
from .event_bus import WordQuestEventBus, async_forward_to_hass
from .services import async_setup_services, async_unload_services
from .store import PersistenceError, WordQuestStore


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for WordQuest entry: %s", entry.entry_id)

    store = WordQuestStore(hass, const.STORAGE_KEY)
    try:
        await store.async_initialize()
    except PersistenceError as err:
        raise ConfigEntryNotReady(str(err)) from err

    event_bus = WordQuestEventBus()
    entry.async_on_unload(async_forward_to_hass(hass, event_bus, entry.entry_id))

    coordinator = WordQuestCoordinator(
        store,
        event_bus,
        entry.options,
        task_factory=lambda coro: hass.async_create_background_task(
            coro, f"{const.DOMAIN} notification drain"
        ),
    )
    await coordinator.async_setup()

    if entry.options.get(
        const.CONF_RUN_MIGRATION_ON_START, const.DEFAULT_RUN_MIGRATION_ON_START
    ):
        # A failed migration is retried on the next start; setup continues
        result = await coordinator.async_migrate()
        if not result[const.MIGRATION_SUCCESS]:
            const.LOGGER.warning(
                "WARNING: Legacy migration incomplete: %s",
                result[const.MIGRATION_ERRORS],
            )

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORE: store,
    }

    async_setup_services(hass)

    # Reload on options change so the queue picks up new timings
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    const.LOGGER.info("INFO: WordQuest setup complete for entry: %s", entry.entry_id)
    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry after its options changed."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading WordQuest entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        entry_data = hass.data[const.DOMAIN].pop(entry.entry_id)
        coordinator: WordQuestCoordinator = entry_data[const.COORDINATOR]
        await coordinator.async_shutdown()

        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry."""
    const.LOGGER.info("INFO: Removing WordQuest entry: %s", entry.entry_id)

    store = WordQuestStore(hass, const.STORAGE_KEY)
    await store.async_delete_storage()

    const.LOGGER.info("INFO: WordQuest entry data cleared: %s", entry.entry_id)
