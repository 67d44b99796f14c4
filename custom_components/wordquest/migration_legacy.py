"""Migration logic for legacy (pre-2.0) WordQuest data.

Converts the loosely structured legacy keys into the current schema exactly
once per successful run. Safe to call on every start:

1. Completion marker present → skipped (fast path)
2. No legacy key present → write defaults and the marker (fresh user)
3. Map unlocked legacy achievements to current ids, unlock silently
4. Apply the fixed legacy badge rules, seed the progress snapshot from the
   legacy counters and run one silent evaluation
5. Write one weekly analytics rollup for the current week
6. Back up all legacy keys verbatim into one timestamped blob
7. Write the completion marker only if steps 3-6 raised nothing

A failed run leaves the marker unwritten and is retried on the next start.
Every step is idempotent when re-run: unlocks are guarded by the unlocked
flag, reward totals are derived from the unlocked set, the rollup replaces
its week entry, and an identical backup is reused instead of duplicated.
Legacy keys themselves are never modified.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
import uuid

from . import const
from .engines.legacy_engine import LegacyEngine
from .engines.statistics_engine import ROLLUP_SOURCE_MIGRATION, StatisticsEngine
from .helpers import backup_helpers as bh
from .managers.progress_manager import UnlockMode
from .store import PersistenceError
from .utils.dt_utils import dt_now_utc

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .event_bus import WordQuestEventBus
    from .managers.progress_manager import ProgressManager
    from .store import KeyValueStore
    from .type_defs import (
        LegacyDataset,
        MigrationRecord,
        MigrationResult,
        MigrationStatus,
    )


class LegacyMigrator:
    """Runs the legacy migration protocol against one store."""

    def __init__(
        self,
        store: KeyValueStore,
        progress_manager: ProgressManager,
        event_bus: WordQuestEventBus,
        *,
        max_backups: int = const.DEFAULT_BACKUPS_MAX_RETAINED,
    ) -> None:
        """Initialize the migrator.

        Args:
            store: Key/value store holding both legacy and current keys
            progress_manager: Sole owner of unlock transitions
            event_bus: Bus used to announce completed migrations
            max_backups: Number of legacy backups retained
        """
        self.store = store
        self.progress = progress_manager
        self.event_bus = event_bus
        self.max_backups = max_backups
        self._stats = StatisticsEngine()

    # =========================================================================
    # Status
    # =========================================================================

    def _get_marker(self) -> MigrationRecord | None:
        marker = self.store.get(const.DATA_MIGRATION)
        if isinstance(marker, dict) and marker.get("completed") is True:
            return marker  # type: ignore[return-value]
        return None

    def get_migration_status(self) -> MigrationStatus:
        """Report whether migration completed and whether legacy data exists."""
        marker = self._get_marker()
        return {
            "completed": marker is not None,
            "has_legacy_data": bool(
                LegacyEngine.detect_present_keys(bh.collect_legacy_data(self.store))
            ),
            "record": marker,
        }

    # =========================================================================
    # Protocol
    # =========================================================================

    async def async_migrate(self) -> MigrationResult:
        """Run the migration protocol. Never raises; errors land in the result."""
        now = dt_now_utc()
        result: MigrationResult = {
            const.MIGRATION_SUCCESS: False,
            const.MIGRATION_SKIPPED: False,
            const.MIGRATION_ACHIEVEMENTS: 0,
            const.MIGRATION_BADGES: 0,
            const.MIGRATION_PROGRESS: 0,
            const.MIGRATION_ERRORS: [],
            "migration_id": uuid.uuid4().hex,
            "timestamp": now.isoformat(),
            "legacy_data_found": False,
            "quarantined": 0,
            "backup_key": None,
            "details": [],
        }  # type: ignore[typeddict-item]

        # Step 1: completion marker is the single source of truth
        if self._get_marker() is not None:
            const.LOGGER.debug("DEBUG: Legacy migration already completed, skipping")
            result[const.MIGRATION_SUCCESS] = True
            result[const.MIGRATION_SKIPPED] = True
            return result

        # Step 2: detect legacy data
        legacy_data = bh.collect_legacy_data(self.store)
        dataset = LegacyEngine.parse_dataset(legacy_data)
        if not dataset["present_keys"]:
            const.LOGGER.info("INFO: No legacy data found, initializing fresh state")
            try:
                await self.progress.async_initialize_defaults()
                await self._async_write_marker(result)
            except PersistenceError as err:
                self._record_error(result, "initialize", err)
                return result
            result[const.MIGRATION_SUCCESS] = True
            return result

        result["legacy_data_found"] = True
        result["quarantined"] = len(dataset["quarantined"])
        for rejected in dataset["quarantined"]:
            result["details"].append(
                f"Quarantined record from {rejected['source_key']}: {rejected['reason']}"
            )
        const.LOGGER.info(
            "INFO: Migrating legacy keys %s (migration %s)",
            dataset["present_keys"],
            result["migration_id"],
        )

        counters = LegacyEngine.aggregate_progress(dataset["progress"])

        # Step 3: achievements
        try:
            await self._async_migrate_achievements(dataset, result)
        except PersistenceError as err:
            self._record_error(result, "achievements", err)

        # Step 4: badges, then progress counters with a silent evaluation
        try:
            await self._async_migrate_badges(counters, result)
        except PersistenceError as err:
            self._record_error(result, "badges", err)
        try:
            await self._async_migrate_progress(counters, result)
        except PersistenceError as err:
            self._record_error(result, "progress", err)

        # Step 5: one weekly analytics rollup
        try:
            await self._async_write_weekly_rollup(counters, result)
        except PersistenceError as err:
            self._record_error(result, "analytics", err)

        # Step 6: verbatim backup of legacy keys
        try:
            result["backup_key"] = await bh.create_legacy_backup(
                self.store, legacy_data, result["migration_id"], now
            )
            await bh.cleanup_old_legacy_backups(self.store, self.max_backups)
        except PersistenceError as err:
            self._record_error(result, "backup", err)

        # Step 7: marker only when every step succeeded
        if result[const.MIGRATION_ERRORS]:
            const.LOGGER.warning(
                "WARNING: Legacy migration %s failed, will retry on next start: %s",
                result["migration_id"],
                result[const.MIGRATION_ERRORS],
            )
            return result

        try:
            await self._async_write_marker(result)
        except PersistenceError as err:
            self._record_error(result, "marker", err)
            return result

        result[const.MIGRATION_SUCCESS] = True
        const.LOGGER.info(
            "INFO: Legacy migration %s completed: %s achievements, %s badges, "
            "%s progress fields",
            result["migration_id"],
            result[const.MIGRATION_ACHIEVEMENTS],
            result[const.MIGRATION_BADGES],
            result[const.MIGRATION_PROGRESS],
        )
        self.event_bus.publish(
            const.EVENT_MIGRATION_COMPLETED,
            {
                key: value
                for key, value in result.items()
                if key != "details"
            },
        )
        return result

    async def async_force_migration(self) -> MigrationResult:
        """Drop the completion marker and run the protocol again.

        Already-unlocked states are untouched, so only new transitions are
        counted.
        """
        const.LOGGER.info("INFO: Forcing legacy migration re-run")
        try:
            await self.store.async_remove(const.DATA_MIGRATION)
        except PersistenceError as err:
            result = await self.async_migrate()
            self._record_error(result, "marker", err)
            result[const.MIGRATION_SUCCESS] = False
            return result
        return await self.async_migrate()

    async def async_restore_legacy_backup(self, backup_key: str | None = None) -> list[str]:
        """Restore legacy keys from a backup (newest when no key is given).

        Raises:
            KeyError: If no matching backup exists.
            PersistenceError: If the keys cannot be saved.
        """
        if backup_key is None:
            backups = bh.discover_legacy_backups(self.store)
            if not backups:
                raise KeyError("no legacy backup")
            backup_key = backups[0]["key"]
        return await bh.restore_legacy_backup(self.store, backup_key)

    # =========================================================================
    # Steps
    # =========================================================================

    async def _async_migrate_achievements(
        self, dataset: LegacyDataset, result: MigrationResult
    ) -> None:
        """Unlock mapped achievements silently, keeping legacy timestamps."""
        for record in dataset["achievements"]:
            if not record["unlocked"]:
                continue
            current_id = LegacyEngine.map_achievement_id(record["legacy_id"])
            if current_id is None:
                const.LOGGER.info(
                    "INFO: Dropping unknown legacy achievement '%s'",
                    record["legacy_id"],
                )
                result["details"].append(
                    f"Unknown legacy achievement dropped: {record['legacy_id']}"
                )
                continue
            if await self.progress.async_unlock(
                const.KIND_ACHIEVEMENT,
                current_id,
                UnlockMode.SILENT,
                unlocked_at=record["unlocked_at"] or result["timestamp"],
            ):
                result[const.MIGRATION_ACHIEVEMENTS] += 1
                result["details"].append(
                    f"Achievement {record['legacy_id']} -> {current_id}"
                )

    async def _async_migrate_badges(
        self, counters: Mapping[str, Any], result: MigrationResult
    ) -> None:
        """Apply each legacy badge rule independently."""
        for badge_id in LegacyEngine.derive_badges(counters):
            if await self.progress.async_unlock(
                const.KIND_BADGE,
                badge_id,
                UnlockMode.SILENT,
                unlocked_at=result["timestamp"],
            ):
                result[const.MIGRATION_BADGES] += 1
                result["details"].append(f"Badge {badge_id} from legacy counters")

    async def _async_migrate_progress(
        self, counters: Mapping[str, Any], result: MigrationResult
    ) -> None:
        """Seed the snapshot from legacy counters and evaluate silently."""
        if not counters:
            return
        before = self.progress.snapshot
        after = await self.progress.async_seed_snapshot(counters)
        result[const.MIGRATION_PROGRESS] += sum(
            1
            for field_name in counters
            if before.get(field_name) != after.get(field_name)  # type: ignore[misc]
        )

        evaluation = await self.progress.async_evaluate(UnlockMode.SILENT)
        result[const.MIGRATION_ACHIEVEMENTS] += len(evaluation["unlocked_achievements"])
        result[const.MIGRATION_BADGES] += len(evaluation["unlocked_badges"])

    async def _async_write_weekly_rollup(
        self, counters: Mapping[str, Any], result: MigrationResult
    ) -> None:
        """Write (or replace) this week's rollup entry."""
        rollups = self.store.get(const.DATA_ANALYTICS_WEEKLY) or {}
        if not isinstance(rollups, dict):
            rollups = {}
        entry = self._stats.build_weekly_rollup(
            counters, dt_now_utc(), ROLLUP_SOURCE_MIGRATION
        )
        self._stats.record_weekly_rollup(rollups, entry)
        self._stats.prune_weekly(rollups)
        await self.store.async_set(const.DATA_ANALYTICS_WEEKLY, rollups)
        result["details"].append(f"Weekly rollup written for {entry['week']}")

    async def _async_write_marker(self, result: MigrationResult) -> None:
        marker: MigrationRecord = {
            "migration_id": result["migration_id"],
            "timestamp": result["timestamp"],
            "completed": True,
            "version": const.MIGRATION_VERSION,
            "counts": {
                const.MIGRATION_ACHIEVEMENTS: result[const.MIGRATION_ACHIEVEMENTS],
                const.MIGRATION_BADGES: result[const.MIGRATION_BADGES],
                const.MIGRATION_PROGRESS: result[const.MIGRATION_PROGRESS],
            },
            "errors": [],
        }
        await self.store.async_set(const.DATA_MIGRATION, marker)

    @staticmethod
    def _record_error(result: MigrationResult, step: str, err: Exception) -> None:
        const.LOGGER.error("ERROR: Legacy migration step '%s' failed: %s", step, err)
        result[const.MIGRATION_ERRORS].append(f"{step}: {err}")
