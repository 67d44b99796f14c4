"""Diagnostics support for WordQuest integration.

Provides the raw storage document (legacy keys and backups included, so it
can be pasted back during data recovery) together with the live queue and
migration status, which are not persisted.
"""

from __future__ import annotations

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import WordQuestCoordinator


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: WordQuestCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    return {
        "options": dict(entry.options),
        "storage": coordinator.store.data,
        "level": dict(coordinator.get_level_progress()),
        "notification_queue": {
            "status": dict(coordinator.get_queue_status()),
            "analytics": dict(coordinator.get_queue_analytics()),
        },
        "migration": dict(coordinator.get_migration_status()),
    }
