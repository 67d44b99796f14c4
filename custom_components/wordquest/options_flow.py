# File: options_flow.py
"""Options Flow for the WordQuest integration.

Edits notification timing and migration options. Saving reloads the entry
(see the update listener in __init__) so the queue picks up new timings.
"""

from __future__ import annotations

from typing import Any

from homeassistant import config_entries

from . import const
from . import flow_helpers as fh


class WordQuestOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for WordQuest settings."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None):
        """Show and save the general options."""
        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_general_options(user_input)
            if not errors:
                const.LOGGER.debug("DEBUG: Updating WordQuest options: %s", user_input)
                return self.async_create_entry(
                    title="", data=fh.build_general_options_data(user_input)
                )

        return self.async_show_form(
            step_id="init",
            data_schema=fh.build_general_options_schema(
                user_input or self.config_entry.options
            ),
            errors=errors,
        )
