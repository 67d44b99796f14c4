"""Tests for WordQuest diagnostics module.

Diagnostics export the raw storage document, so legacy keys and backups
can be pasted back during data recovery.
"""

from typing import Any

from homeassistant.core import HomeAssistant

from custom_components.wordquest import const
from custom_components.wordquest.diagnostics import async_get_config_entry_diagnostics

from tests.helpers import setup_from_yaml, setup_integration, stored_document


async def test_diagnostics_returns_storage_document(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    """The storage section matches the persisted document."""
    result = await setup_from_yaml(hass, hass_storage, "legacy_v1.yaml")

    diagnostics = await async_get_config_entry_diagnostics(hass, result.config_entry)

    assert diagnostics["storage"] == stored_document(hass_storage)
    assert "userProgress" in diagnostics["storage"]
    assert diagnostics["migration"]["completed"] is True
    assert diagnostics["migration"]["has_legacy_data"] is True


async def test_diagnostics_live_state(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    """Options, level and queue state are included."""
    result = await setup_integration(hass, hass_storage)
    await result.coordinator.async_track_progress({"words_learned": 100})
    await result.coordinator.async_join_notifications()

    diagnostics = await async_get_config_entry_diagnostics(hass, result.config_entry)

    assert diagnostics["options"] == dict(result.config_entry.options)
    assert diagnostics["level"]["level"] == 6
    assert diagnostics["notification_queue"]["status"]["is_displaying"] is False
    assert diagnostics["notification_queue"]["analytics"]["total_displayed"] > 0
    assert const.DATA_PROGRESS in diagnostics["storage"]
