# File: config_flow.py
"""Config flow for the WordQuest integration.

A single instance is allowed. The one form collects the notification timing
and migration options, which are stored as entry options.
"""

from __future__ import annotations

from typing import Any

from homeassistant import config_entries
from homeassistant.core import callback

from . import const
from . import flow_helpers as fh
from .options_flow import WordQuestOptionsFlowHandler


class WordQuestConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for WordQuest."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None):
        """Show the options form and create the entry."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_general_options(user_input)
            if not errors:
                return self.async_create_entry(
                    title=const.WORDQUEST_TITLE,
                    data={},
                    options=fh.build_general_options_data(user_input),
                )

        return self.async_show_form(
            step_id="user",
            data_schema=fh.build_general_options_schema(user_input),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry):
        """Return the Options Flow."""
        return WordQuestOptionsFlowHandler()
