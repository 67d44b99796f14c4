# File: flow_helpers.py
"""Helpers for the WordQuest integration's Config and Options flow.

The config flow and the options flow edit the same four settings, so both
use one schema builder, one validator and one data builder:

- build_general_options_schema(defaults) -> vol.Schema
- validate_general_options(user_input) -> errors_dict (empty = valid)
- build_general_options_data(user_input) -> options dict
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import voluptuous as vol
from homeassistant.helpers import selector

from . import const


def build_general_options_schema(
    defaults: Mapping[str, Any] | None = None,
) -> vol.Schema:
    """Build the options form, pre-filled with defaults."""
    values = {**const.DEFAULT_OPTIONS, **(defaults or {})}
    return vol.Schema(
        {
            vol.Required(
                const.CONF_DISPLAY_TIMEOUT,
                default=values[const.CONF_DISPLAY_TIMEOUT],
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=0.5,
                    max=60,
                    step=0.5,
                    unit_of_measurement="s",
                    mode=selector.NumberSelectorMode.BOX,
                )
            ),
            vol.Required(
                const.CONF_SETTLE_DELAY,
                default=values[const.CONF_SETTLE_DELAY],
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=0,
                    max=10,
                    step=0.1,
                    unit_of_measurement="s",
                    mode=selector.NumberSelectorMode.BOX,
                )
            ),
            vol.Required(
                const.CONF_RUN_MIGRATION_ON_START,
                default=values[const.CONF_RUN_MIGRATION_ON_START],
            ): selector.BooleanSelector(),
            vol.Required(
                const.CONF_BACKUPS_MAX_RETAINED,
                default=values[const.CONF_BACKUPS_MAX_RETAINED],
            ): selector.NumberSelector(
                selector.NumberSelectorConfig(
                    min=1, max=10, step=1, mode=selector.NumberSelectorMode.BOX
                )
            ),
        }
    )


def validate_general_options(user_input: Mapping[str, Any]) -> dict[str, str]:
    """Validate the options form.

    The settle delay must be shorter than the display timeout, otherwise
    consecutive popups would spend longer settling than on screen.

    Returns:
        Dictionary of errors (empty if validation passes).
    """
    errors: dict[str, str] = {}
    display_timeout = float(
        user_input.get(const.CONF_DISPLAY_TIMEOUT, const.DEFAULT_DISPLAY_TIMEOUT)
    )
    settle_delay = float(
        user_input.get(const.CONF_SETTLE_DELAY, const.DEFAULT_SETTLE_DELAY)
    )
    if display_timeout <= 0 or settle_delay < 0 or settle_delay >= display_timeout:
        errors["base"] = const.TRANS_KEY_ERROR_INVALID_TIMING
    return errors


def build_general_options_data(user_input: Mapping[str, Any]) -> dict[str, Any]:
    """Convert form values (selectors return floats) into stored options."""
    values = {**const.DEFAULT_OPTIONS, **user_input}
    return {
        const.CONF_DISPLAY_TIMEOUT: float(values[const.CONF_DISPLAY_TIMEOUT]),
        const.CONF_SETTLE_DELAY: float(values[const.CONF_SETTLE_DELAY]),
        const.CONF_RUN_MIGRATION_ON_START: bool(
            values[const.CONF_RUN_MIGRATION_ON_START]
        ),
        const.CONF_BACKUPS_MAX_RETAINED: int(values[const.CONF_BACKUPS_MAX_RETAINED]),
    }
