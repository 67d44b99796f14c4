"""Shared fixtures for WordQuest tests."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.wordquest.const import DOMAIN, STORAGE_KEY
from custom_components.wordquest.coordinator import WordQuestCoordinator
from custom_components.wordquest.event_bus import WordQuestEventBus
from custom_components.wordquest.store import WordQuestStore

from tests.helpers import FAST_OPTIONS

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="WordQuest",
        data={},
        options=dict(FAST_OPTIONS),
        entry_id="test_entry_id",
        unique_id="test_unique_id",
    )


@pytest.fixture
async def store(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> WordQuestStore:
    """Return an initialized store backed by the mocked storage."""
    # pylint: disable=unused-argument
    wq_store = WordQuestStore(hass, STORAGE_KEY)
    await wq_store.async_initialize()
    return wq_store


@pytest.fixture
def event_bus() -> WordQuestEventBus:
    """Return a fresh engine event bus."""
    return WordQuestEventBus()


@pytest.fixture
def recorded_events(
    event_bus: WordQuestEventBus,  # pylint: disable=redefined-outer-name
) -> list[tuple[str, dict[str, Any]]]:
    """Record every event published on the bus."""
    events: list[tuple[str, dict[str, Any]]] = []
    event_bus.subscribe(lambda event_type, payload: events.append((event_type, payload)))
    return events


@pytest.fixture
async def coordinator(
    store: WordQuestStore,  # pylint: disable=redefined-outer-name
    event_bus: WordQuestEventBus,  # pylint: disable=redefined-outer-name
) -> AsyncGenerator[WordQuestCoordinator, None]:
    """Return a set-up coordinator; the drain loop is stopped afterwards."""
    wq_coordinator = WordQuestCoordinator(store, event_bus, FAST_OPTIONS)
    await wq_coordinator.async_setup()
    yield wq_coordinator
    await wq_coordinator.async_shutdown()


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
) -> MockConfigEntry:
    """Set up the WordQuest integration for testing."""
    mock_config_entry.add_to_hass(hass)

    assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    return mock_config_entry
