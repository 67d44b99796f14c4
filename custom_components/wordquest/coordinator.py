# File: coordinator.py
"""Coordinator for the WordQuest integration.

Owns one event bus, the progress and notification managers, and the legacy
migrator for a config entry. Service handlers and diagnostics talk to this
object only; the managers never reach back into Home Assistant.
"""

# pylint: disable=too-many-public-methods

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from . import const
from .catalog import DEFAULT_CATALOG
from .managers import NotificationManager, ProgressManager, UnlockMode
from .migration_legacy import LegacyMigrator

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .catalog import DefinitionCatalog
    from .event_bus import WordQuestEventBus
    from .managers.notification_manager import DisplayCallback, TaskFactory
    from .store import KeyValueStore
    from .type_defs import (
        BadgeCollection,
        LevelState,
        MigrationResult,
        MigrationStatus,
        MilestoneInfo,
        ProgressSnapshot,
        QueueAnalytics,
        QueueStatus,
        TrackResult,
    )


class WordQuestCoordinator:
    """Entry-scoped facade over the WordQuest managers."""

    def __init__(
        self,
        store: KeyValueStore,
        event_bus: WordQuestEventBus,
        options: Mapping[str, Any] | None = None,
        catalog: DefinitionCatalog = DEFAULT_CATALOG,
        task_factory: TaskFactory | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Key/value store shared by all managers
            event_bus: Bus the managers publish on
            options: Config entry options (missing keys use DEFAULT_OPTIONS)
            catalog: Achievement and badge definitions
            task_factory: Creates the notification drain task
        """
        settings = {**const.DEFAULT_OPTIONS, **(options or {})}
        self.store = store
        self.event_bus = event_bus
        self.catalog = catalog
        self.options = settings

        self.progress_manager = ProgressManager(store, event_bus, catalog)
        self.notification_manager = NotificationManager(
            store,
            event_bus,
            catalog,
            display_timeout=float(settings[const.CONF_DISPLAY_TIMEOUT]),
            settle_delay=float(settings[const.CONF_SETTLE_DELAY]),
            task_factory=task_factory,
        )
        self.migrator = LegacyMigrator(
            store,
            self.progress_manager,
            event_bus,
            max_backups=int(settings[const.CONF_BACKUPS_MAX_RETAINED]),
        )

    async def async_setup(self) -> None:
        """Set up managers (subscriptions first, so no unlock is missed)."""
        await self.notification_manager.async_setup()
        await self.progress_manager.async_setup()

    async def async_shutdown(self) -> None:
        """Stop the drain loop and drop every subscription."""
        await self.notification_manager.async_shutdown()
        await self.progress_manager.async_shutdown()

    # -------------------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------------------

    async def async_track_progress(self, delta: Mapping[str, Any]) -> TrackResult:
        """Record gameplay readings; new unlocks are queued for display."""
        return await self.progress_manager.async_track_progress(delta, UnlockMode.NOTIFY)

    @property
    def snapshot(self) -> ProgressSnapshot:
        """Current progress snapshot."""
        return self.progress_manager.snapshot

    def get_level_progress(self) -> LevelState:
        """Level derived from words learned."""
        return self.progress_manager.get_level_progress()

    def get_milestones(self) -> list[MilestoneInfo]:
        """Word milestones with their reached flag."""
        return self.progress_manager.get_milestones()

    def get_achievements(self) -> list[dict[str, Any]]:
        """Achievements merged with their unlock state."""
        return self.progress_manager.get_achievements()

    def get_achievements_by_category(self) -> dict[str, list[dict[str, Any]]]:
        """Achievements grouped by category."""
        return self.progress_manager.get_achievements_by_category()

    def get_total_achievement_points(self) -> int:
        """Reward points of unlocked achievements."""
        return self.progress_manager.get_total_achievement_points()

    def get_badges(self) -> list[dict[str, Any]]:
        """Badges merged with their unlock state."""
        return self.progress_manager.get_badges()

    def get_badge_collection(self) -> BadgeCollection:
        """Earned badge summary."""
        return self.progress_manager.get_badge_collection()

    def get_next_achievable_badges(
        self, limit: int = const.DEFAULT_NEXT_ACHIEVABLE_LIMIT
    ) -> list[dict[str, Any]]:
        """Locked badges closest to unlocking."""
        return self.progress_manager.get_next_achievable_badges(limit)

    async def async_claim_achievement(self, definition_id: str) -> bool:
        """Claim an unlocked achievement's reward once."""
        return await self.progress_manager.async_claim_achievement(definition_id)

    async def async_reset_progress(self) -> None:
        """Reset progress and unlock states; pending popups are dropped."""
        self.notification_manager.clear()
        await self.progress_manager.async_reset()

    # -------------------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------------------

    def set_display_callback(self, display_callback: DisplayCallback | None) -> None:
        """Register the UI collaborator that shows popups."""
        self.notification_manager.set_display_callback(display_callback)

    def acknowledge_notification(self, definition_id: str | None = None) -> bool:
        """Resolve the displayed popup early."""
        return self.notification_manager.acknowledge(definition_id)

    def clear_notifications(self) -> int:
        """Drop queued popups and release the current wait."""
        return self.notification_manager.clear()

    def get_queue_status(self) -> QueueStatus:
        """Notification queue status."""
        return self.notification_manager.status()

    def get_queue_analytics(self) -> QueueAnalytics:
        """Notification queue counters."""
        return self.notification_manager.analytics()

    async def async_join_notifications(self) -> None:
        """Wait until the queue is drained."""
        await self.notification_manager.queue.async_join()

    # -------------------------------------------------------------------------------------
    # Migration
    # -------------------------------------------------------------------------------------

    async def async_migrate(self, force: bool = False) -> MigrationResult:
        """Run legacy migration (re-running it when force is set)."""
        if force:
            return await self.migrator.async_force_migration()
        return await self.migrator.async_migrate()

    def get_migration_status(self) -> MigrationStatus:
        """Whether migration completed and legacy data is present."""
        return self.migrator.get_migration_status()

    async def async_restore_legacy_backup(self, backup_key: str | None = None) -> list[str]:
        """Write backed-up legacy keys back into the store."""
        return await self.migrator.async_restore_legacy_backup(backup_key)
