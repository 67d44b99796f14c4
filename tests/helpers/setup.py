"""Setup helpers for WordQuest test configuration.

Legacy datasets live in YAML scenario files so tests read as "given this
old data, migration produces ...":

    result = await setup_from_yaml(hass, hass_storage, "legacy_v1.yaml")
    # Access: result.config_entry, result.coordinator, result.legacy

Storage is seeded through the ``hass_storage`` fixture, so the integration
loads the legacy keys exactly as it would from a real ``.storage`` file.
"""

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry
import yaml

from custom_components.wordquest import const
from custom_components.wordquest.coordinator import WordQuestCoordinator

SCENARIO_DIR = Path(__file__).parent.parent / "scenarios"

# Short timings keep queue-driven tests fast
FAST_OPTIONS: dict[str, Any] = {
    const.CONF_DISPLAY_TIMEOUT: 0.05,
    const.CONF_SETTLE_DELAY: 0.0,
    const.CONF_RUN_MIGRATION_ON_START: True,
    const.CONF_BACKUPS_MAX_RETAINED: 3,
}

# =============================================================================
# DATACLASSES
# =============================================================================


@dataclass
class SetupResult:
    """Result from setup_integration.

    Attributes:
        config_entry: The loaded ConfigEntry
        coordinator: The WordQuestCoordinator instance
        legacy: Legacy keys seeded into storage before setup
    """

    config_entry: ConfigEntry
    coordinator: WordQuestCoordinator
    legacy: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# SCENARIOS
# =============================================================================


def load_legacy_scenario(name: str) -> dict[str, Any]:
    """Load the ``legacy`` mapping of a scenario file."""
    with (SCENARIO_DIR / name).open(encoding="utf-8") as handle:
        scenario = yaml.safe_load(handle)
    return scenario.get("legacy", {})


def seed_storage(hass_storage: dict[str, Any], data: dict[str, Any]) -> None:
    """Place a storage document where Store.async_load will find it."""
    hass_storage[const.STORAGE_KEY] = {
        "version": const.STORAGE_VERSION,
        "minor_version": 1,
        "key": const.STORAGE_KEY,
        "data": copy.deepcopy(data),
    }


def stored_document(hass_storage: dict[str, Any]) -> dict[str, Any]:
    """Return the storage document last written by the integration."""
    return hass_storage[const.STORAGE_KEY]["data"]


# =============================================================================
# INTEGRATION SETUP
# =============================================================================


async def setup_integration(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    *,
    legacy: dict[str, Any] | None = None,
    options: dict[str, Any] | None = None,
) -> SetupResult:
    """Seed storage, add a config entry and set the integration up."""
    if legacy:
        seed_storage(hass_storage, legacy)

    entry = MockConfigEntry(
        domain=const.DOMAIN,
        title=const.WORDQUEST_TITLE,
        data={},
        options={**FAST_OPTIONS, **(options or {})},
        entry_id="test_entry_id",
    )
    entry.add_to_hass(hass)

    assert await hass.config_entries.async_setup(entry.entry_id)
    await hass.async_block_till_done()

    return SetupResult(
        config_entry=entry,
        coordinator=hass.data[const.DOMAIN][entry.entry_id][const.COORDINATOR],
        legacy=copy.deepcopy(legacy or {}),
    )


async def setup_from_yaml(
    hass: HomeAssistant,
    hass_storage: dict[str, Any],
    scenario: str,
    options: dict[str, Any] | None = None,
) -> SetupResult:
    """Set the integration up on top of a legacy scenario file."""
    return await setup_integration(
        hass,
        hass_storage,
        legacy=load_legacy_scenario(scenario),
        options=options,
    )
