"""Tests for WordQuest config and options flows."""

from unittest.mock import patch

from homeassistant import config_entries
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.wordquest.const import (
    CONF_BACKUPS_MAX_RETAINED,
    CONF_DISPLAY_TIMEOUT,
    CONF_RUN_MIGRATION_ON_START,
    CONF_SETTLE_DELAY,
    DEFAULT_OPTIONS,
    DOMAIN,
    WORDQUEST_TITLE,
)

USER_INPUT = {
    CONF_DISPLAY_TIMEOUT: 6.0,
    CONF_SETTLE_DELAY: 1.0,
    CONF_RUN_MIGRATION_ON_START: False,
    CONF_BACKUPS_MAX_RETAINED: 5.0,
}


async def test_form_user_flow_success(hass: HomeAssistant) -> None:
    """Test successful user config flow."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result.get("type") == FlowResultType.FORM
    assert result.get("step_id") == "user"

    with patch(
        "custom_components.wordquest.async_setup_entry",
        return_value=True,
    ) as mock_setup_entry:
        result = await hass.config_entries.flow.async_configure(
            result.get("flow_id"), user_input=USER_INPUT
        )
        await hass.async_block_till_done()

    assert result.get("type") == FlowResultType.CREATE_ENTRY
    assert result.get("title") == WORDQUEST_TITLE
    assert result.get("data") == {}
    entry = result.get("result")
    assert entry.options == {
        CONF_DISPLAY_TIMEOUT: 6.0,
        CONF_SETTLE_DELAY: 1.0,
        CONF_RUN_MIGRATION_ON_START: False,
        CONF_BACKUPS_MAX_RETAINED: 5,
    }
    assert len(mock_setup_entry.mock_calls) == 1


async def test_form_user_flow_defaults(hass: HomeAssistant) -> None:
    """Submitting the pre-filled form stores the default options."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    with patch("custom_components.wordquest.async_setup_entry", return_value=True):
        result = await hass.config_entries.flow.async_configure(
            result.get("flow_id"), user_input=dict(DEFAULT_OPTIONS)
        )
        await hass.async_block_till_done()

    assert result.get("type") == FlowResultType.CREATE_ENTRY
    assert result.get("result").options == DEFAULT_OPTIONS


async def test_form_invalid_timing(hass: HomeAssistant) -> None:
    """A settle delay not shorter than the display timeout is rejected."""
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    result = await hass.config_entries.flow.async_configure(
        result.get("flow_id"),
        user_input={**USER_INPUT, CONF_SETTLE_DELAY: 6.0},
    )

    assert result.get("type") == FlowResultType.FORM
    assert result.get("errors") == {"base": "invalid_timing"}


async def test_single_instance(hass: HomeAssistant) -> None:
    """Only one WordQuest entry may exist."""
    MockConfigEntry(domain=DOMAIN, title=WORDQUEST_TITLE, data={}).add_to_hass(hass)

    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": config_entries.SOURCE_USER}
    )

    assert result.get("type") == FlowResultType.ABORT
    assert result.get("reason") == "single_instance_allowed"


async def test_options_flow_updates_entry(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Saving options stores the coerced values."""
    result = await hass.config_entries.options.async_init(init_integration.entry_id)
    assert result.get("type") == FlowResultType.FORM
    assert result.get("step_id") == "init"

    result = await hass.config_entries.options.async_configure(
        result.get("flow_id"), user_input=USER_INPUT
    )
    await hass.async_block_till_done()

    assert result.get("type") == FlowResultType.CREATE_ENTRY
    assert init_integration.options[CONF_DISPLAY_TIMEOUT] == 6.0
    assert init_integration.options[CONF_BACKUPS_MAX_RETAINED] == 5


async def test_options_flow_invalid_timing(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Invalid timings keep the form open and leave options unchanged."""
    original = dict(init_integration.options)
    result = await hass.config_entries.options.async_init(init_integration.entry_id)

    result = await hass.config_entries.options.async_configure(
        result.get("flow_id"),
        user_input={**USER_INPUT, CONF_DISPLAY_TIMEOUT: 1.0, CONF_SETTLE_DELAY: 2.0},
    )

    assert result.get("type") == FlowResultType.FORM
    assert result.get("errors") == {"base": "invalid_timing"}
    assert dict(init_integration.options) == original
