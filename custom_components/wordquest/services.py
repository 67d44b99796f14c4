# File: services.py
"""Defines custom services for the WordQuest integration.

These services let the word game (or scripts and automations) report
progress, close popups, claim achievement rewards and manage migration.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from . import const
from .coordinator import WordQuestCoordinator

# --- Service Schemas ---
TRACK_PROGRESS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.PROGRESS_WORDS_LEARNED): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Optional(const.PROGRESS_STREAK_DAYS): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Optional(const.PROGRESS_ACCURACY_PERCENT): vol.All(
            vol.Coerce(float), vol.Range(min=0, max=100)
        ),
        vol.Optional(const.PROGRESS_CATEGORIES_COMPLETED): vol.All(
            cv.ensure_list, [cv.string]
        ),
        vol.Optional(const.PROGRESS_QUIZ_SCORE): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Optional(const.PROGRESS_SESSION_COUNT): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Optional(const.PROGRESS_BEST_COMPLETION_SECONDS): vol.All(
            vol.Coerce(float), vol.Range(min=0)
        ),
    }
)

ACKNOWLEDGE_NOTIFICATION_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_DEFINITION_ID): cv.string,
    }
)

CLEAR_NOTIFICATIONS_SCHEMA = vol.Schema({})

CLAIM_ACHIEVEMENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_ACHIEVEMENT_ID): cv.string,
    }
)

RUN_MIGRATION_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_FORCE, default=False): cv.boolean,
    }
)

RESET_PROGRESS_SCHEMA = vol.Schema({})


def _get_coordinator(hass: HomeAssistant, service: str) -> WordQuestCoordinator:
    """Return the coordinator of the loaded WordQuest entry.

    Raises:
        HomeAssistantError: If no entry is loaded.
    """
    entries = hass.data.get(const.DOMAIN, {})
    for entry_data in entries.values():
        return entry_data[const.COORDINATOR]
    const.LOGGER.warning("WARNING: %s: %s", service, const.MSG_NO_ENTRY_FOUND)
    raise HomeAssistantError(const.MSG_NO_ENTRY_FOUND)


def async_setup_services(hass: HomeAssistant) -> None:
    """Register WordQuest services."""

    async def handle_track_progress(call: ServiceCall) -> ServiceResponse:
        """Handle a progress report from the game."""
        coordinator = _get_coordinator(hass, "Track Progress")
        result = await coordinator.async_track_progress(dict(call.data))

        const.LOGGER.debug(
            "DEBUG: Track Progress: %s achievements and %s badges unlocked",
            len(result["unlocked_achievements"]),
            len(result["unlocked_badges"]),
        )
        if not call.return_response:
            return None
        return {
            "unlocked_achievements": result["unlocked_achievements"],
            "unlocked_badges": result["unlocked_badges"],
            "level": dict(result["level"]),
        }

    async def handle_acknowledge_notification(call: ServiceCall) -> None:
        """Handle a popup being closed by the user."""
        coordinator = _get_coordinator(hass, "Acknowledge Notification")
        definition_id = call.data.get(const.FIELD_DEFINITION_ID)
        if not coordinator.acknowledge_notification(definition_id):
            const.LOGGER.debug(
                "DEBUG: Acknowledge Notification: nothing to acknowledge for %s",
                definition_id,
            )

    async def handle_clear_notifications(call: ServiceCall) -> None:
        """Handle dropping every pending popup."""
        coordinator = _get_coordinator(hass, "Clear Notifications")
        dropped = coordinator.clear_notifications()
        const.LOGGER.info("INFO: Cleared %s pending notifications", dropped)

    async def handle_claim_achievement(call: ServiceCall) -> None:
        """Handle claiming an unlocked achievement's reward."""
        coordinator = _get_coordinator(hass, "Claim Achievement")
        achievement_id = call.data[const.FIELD_ACHIEVEMENT_ID]

        if coordinator.catalog.get_achievement(achievement_id) is None:
            const.LOGGER.warning(
                "WARNING: Claim Achievement: %s",
                const.ERROR_ACHIEVEMENT_NOT_FOUND_FMT.format(achievement_id),
            )
            raise HomeAssistantError(
                const.ERROR_ACHIEVEMENT_NOT_FOUND_FMT.format(achievement_id)
            )

        if not await coordinator.async_claim_achievement(achievement_id):
            raise HomeAssistantError(
                const.ERROR_ACHIEVEMENT_NOT_CLAIMABLE_FMT.format(achievement_id)
            )

        const.LOGGER.info("INFO: Achievement '%s' claimed", achievement_id)

    async def handle_run_migration(call: ServiceCall) -> ServiceResponse:
        """Handle a manual legacy migration run."""
        coordinator = _get_coordinator(hass, "Run Migration")
        result = await coordinator.async_migrate(force=call.data[const.FIELD_FORCE])

        if not result[const.MIGRATION_SUCCESS]:
            raise HomeAssistantError(
                f"Legacy migration failed: {', '.join(result[const.MIGRATION_ERRORS])}"
            )
        if not call.return_response:
            return None
        response: dict[str, Any] = dict(result)
        return response

    async def handle_reset_progress(call: ServiceCall) -> None:
        """Handle resetting all progress and unlock states."""
        coordinator = _get_coordinator(hass, "Reset Progress")
        await coordinator.async_reset_progress()

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_TRACK_PROGRESS,
        handle_track_progress,
        schema=TRACK_PROGRESS_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_ACKNOWLEDGE_NOTIFICATION,
        handle_acknowledge_notification,
        schema=ACKNOWLEDGE_NOTIFICATION_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CLEAR_NOTIFICATIONS,
        handle_clear_notifications,
        schema=CLEAR_NOTIFICATIONS_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CLAIM_ACHIEVEMENT,
        handle_claim_achievement,
        schema=CLAIM_ACHIEVEMENT_SCHEMA,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RUN_MIGRATION,
        handle_run_migration,
        schema=RUN_MIGRATION_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RESET_PROGRESS,
        handle_reset_progress,
        schema=RESET_PROGRESS_SCHEMA,
    )

    const.LOGGER.info("INFO: WordQuest services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister WordQuest services when unloading the integration."""
    services = [
        const.SERVICE_TRACK_PROGRESS,
        const.SERVICE_ACKNOWLEDGE_NOTIFICATION,
        const.SERVICE_CLEAR_NOTIFICATIONS,
        const.SERVICE_CLAIM_ACHIEVEMENT,
        const.SERVICE_RUN_MIGRATION,
        const.SERVICE_RESET_PROGRESS,
    ]

    for service in services:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: WordQuest services have been unregistered")
