"""Progress Manager for WordQuest integration.

Owns the learner's progress snapshot and every achievement/badge unlock
state. It is the only component that flips ``unlocked`` to True:

- async_track_progress(): merge gameplay readings, evaluate, persist
- async_unlock(): direct unlock used by migration (silent)
- async_claim_achievement(): one-time claim of an unlocked achievement

Unlocks are announced with ``unlock_recorded`` carrying the unlock mode.
The NotificationManager only queues popups for Notify-mode unlocks, so a
Silent unlock never reaches the queue.

Evaluation itself lives in ProgressEngine; this manager handles persistence
and events. Calls are expected to be sequenced by the caller.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.level_engine import LevelEngine
from ..engines.progress_engine import ProgressEngine
from ..utils.dt_utils import dt_now_iso
from .base_manager import BaseManager

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..catalog import DefinitionCatalog
    from ..event_bus import WordQuestEventBus
    from ..store import KeyValueStore
    from ..type_defs import (
        BadgeCollection,
        LevelState,
        MilestoneInfo,
        ProgressSnapshot,
        TrackResult,
        UnlockStates,
    )


class UnlockMode(StrEnum):
    """How an unlock transition is announced."""

    NOTIFY = const.UNLOCK_MODE_NOTIFY
    SILENT = const.UNLOCK_MODE_SILENT


# Persisted key per definition kind
_STATE_KEYS = {
    const.KIND_ACHIEVEMENT: const.DATA_ACHIEVEMENTS,
    const.KIND_BADGE: const.DATA_BADGES,
}


class ProgressManager(BaseManager):
    """Stateful owner of the progress snapshot and unlock states."""

    def __init__(
        self,
        store: KeyValueStore,
        event_bus: WordQuestEventBus,
        catalog: DefinitionCatalog,
    ) -> None:
        """Initialize the progress manager.

        Args:
            store: Key/value persistence adapter
            event_bus: Bus owned by the parent coordinator
            catalog: Definition catalog to evaluate against
        """
        super().__init__(store, event_bus)
        self.catalog = catalog

    async def async_setup(self) -> None:
        """Log the loaded state; states are created lazily on first write."""
        const.LOGGER.debug(
            "DEBUG: ProgressManager ready: %s achievements, %s badges unlocked",
            len(self.get_unlocked_ids(const.KIND_ACHIEVEMENT)),
            len(self.get_unlocked_ids(const.KIND_BADGE)),
        )

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def snapshot(self) -> ProgressSnapshot:
        """Current progress snapshot (a normalized copy)."""
        return ProgressEngine.normalize_snapshot(self.store.get(const.DATA_PROGRESS))

    def get_states(self, kind: str) -> UnlockStates:
        """Unlock states of one kind, one entry per catalog definition."""
        return ProgressEngine.normalize_states(
            self.catalog.definitions(kind), self.store.get(_STATE_KEYS[kind])
        )

    def get_unlocked_ids(self, kind: str) -> list[str]:
        """Ids of unlocked definitions in catalog order."""
        states = self.get_states(kind)
        return [
            definition.id
            for definition in self.catalog.definitions(kind)
            if states[definition.id][const.STATE_UNLOCKED]
        ]

    def _merged_view(self, kind: str) -> list[dict[str, Any]]:
        states = self.get_states(kind)
        view: list[dict[str, Any]] = []
        for definition in self.catalog.definitions(kind):
            state = states[definition.id]
            view.append(
                {
                    **definition.as_payload(),
                    const.EVENT_DATA_STATE: state,
                    "progress_percent": ProgressEngine.progress_percent(
                        definition.requirement, state
                    ),
                }
            )
        return view

    def get_achievements(self) -> list[dict[str, Any]]:
        """Achievement definitions merged with their state (catalog order)."""
        return self._merged_view(const.KIND_ACHIEVEMENT)

    def get_badges(self) -> list[dict[str, Any]]:
        """Badge definitions merged with their state (catalog order)."""
        return self._merged_view(const.KIND_BADGE)

    def get_achievements_by_category(self) -> dict[str, list[dict[str, Any]]]:
        """Achievement view grouped by category."""
        grouped: dict[str, list[dict[str, Any]]] = {}
        for item in self.get_achievements():
            grouped.setdefault(item["category"], []).append(item)
        return grouped

    def get_total_achievement_points(self) -> int:
        """Reward points of all unlocked achievements."""
        return ProgressEngine.total_points(
            self.catalog.achievements, self.get_states(const.KIND_ACHIEVEMENT)
        )

    def get_badge_collection(self) -> BadgeCollection:
        """Earned badge summary with prestige level."""
        return ProgressEngine.badge_collection(
            self.catalog.badges, self.get_states(const.KIND_BADGE)
        )

    def get_next_achievable_badges(
        self, limit: int = const.DEFAULT_NEXT_ACHIEVABLE_LIMIT
    ) -> list[dict[str, Any]]:
        """Locked badges closest to unlocking."""
        return [
            {**definition.as_payload(), "progress_percent": percent}
            for definition, percent in ProgressEngine.next_achievable(
                self.catalog.badges, self.get_states(const.KIND_BADGE), limit
            )
        ]

    def get_level_progress(self) -> LevelState:
        """Level state derived from the current snapshot (never stored)."""
        return LevelEngine.level_for_words(
            self.snapshot[const.PROGRESS_WORDS_LEARNED]
        )

    def get_milestones(self) -> list[MilestoneInfo]:
        """Word milestones with their reached flag."""
        return LevelEngine.get_milestones(self.snapshot[const.PROGRESS_WORDS_LEARNED])

    # =========================================================================
    # Writes
    # =========================================================================

    async def async_track_progress(
        self,
        delta: Mapping[str, Any],
        mode: UnlockMode = UnlockMode.NOTIFY,
    ) -> TrackResult:
        """Merge gameplay readings into the snapshot and evaluate unlocks.

        Achievements are evaluated before badges; within each kind unlocks
        are reported in catalog order, which is also the order popups are
        queued in.

        Args:
            delta: Absolute cumulative readings (see ProgressEngine.merge_snapshot)
            mode: NOTIFY queues popups for new unlocks, SILENT does not

        Returns:
            TrackResult with the merged snapshot, new unlock ids and level.

        Raises:
            PersistenceError: If the snapshot or states cannot be saved.
        """
        now_iso = dt_now_iso()
        snapshot = ProgressEngine.merge_snapshot(
            self.store.get(const.DATA_PROGRESS), delta, now_iso
        )
        await self.store.async_set(const.DATA_PROGRESS, snapshot)

        unlocked_achievements = await self._async_evaluate_kind(
            const.KIND_ACHIEVEMENT, snapshot, now_iso, mode
        )
        unlocked_badges = await self._async_evaluate_kind(
            const.KIND_BADGE, snapshot, now_iso, mode
        )

        level = LevelEngine.level_for_words(snapshot[const.PROGRESS_WORDS_LEARNED])
        self.emit(
            const.EVENT_PROGRESS_UPDATED,
            snapshot=dict(snapshot),
            level=dict(level),
            unlocked_achievements=unlocked_achievements,
            unlocked_badges=unlocked_badges,
        )

        if unlocked_achievements or unlocked_badges:
            const.LOGGER.info(
                "INFO: Progress unlocked achievements %s and badges %s (%s)",
                unlocked_achievements,
                unlocked_badges,
                mode,
            )

        return {
            "snapshot": snapshot,
            "unlocked_achievements": unlocked_achievements,
            "unlocked_badges": unlocked_badges,
            "level": level,
        }

    async def async_evaluate(self, mode: UnlockMode = UnlockMode.NOTIFY) -> TrackResult:
        """Re-evaluate the stored snapshot without new readings."""
        return await self.async_track_progress({}, mode)

    async def _async_evaluate_kind(
        self,
        kind: str,
        snapshot: ProgressSnapshot,
        now_iso: str,
        mode: UnlockMode,
    ) -> list[str]:
        """Evaluate one kind, persist its states, announce new unlocks."""
        batch = ProgressEngine.evaluate(
            self.catalog.definitions(kind),
            self.store.get(_STATE_KEYS[kind]),
            snapshot,
            now_iso,
        )
        await self.store.async_set(_STATE_KEYS[kind], batch["states"])
        for definition_id in batch["unlocked_now"]:
            self._announce_unlock(kind, definition_id, batch["states"][definition_id], mode)
        return batch["unlocked_now"]

    async def async_unlock(
        self,
        kind: str,
        definition_id: str,
        mode: UnlockMode,
        unlocked_at: str | None = None,
    ) -> bool:
        """Unlock one definition directly (used by migration).

        Idempotent: an already-unlocked definition is left untouched, keeping
        its original date.

        Returns:
            True if the state transitioned, False if already unlocked or the
            id is not in the catalog.

        Raises:
            PersistenceError: If the state cannot be saved.
        """
        if self.catalog.get_definition(kind, definition_id) is None:
            const.LOGGER.warning(
                "WARNING: Cannot unlock unknown %s '%s'", kind, definition_id
            )
            return False

        states = self.get_states(kind)
        state = states[definition_id]
        if not ProgressEngine.apply_unlock(state, unlocked_at or dt_now_iso()):
            return False

        await self.store.async_set(_STATE_KEYS[kind], states)
        self._announce_unlock(kind, definition_id, state, mode)
        return True

    async def async_claim_achievement(self, definition_id: str) -> bool:
        """Mark an unlocked achievement as claimed (once).

        Returns:
            True if claimed now; False if unknown, locked or already claimed.

        Raises:
            PersistenceError: If the state cannot be saved.
        """
        definition = self.catalog.get_achievement(definition_id)
        if definition is None:
            return False

        states = self.get_states(const.KIND_ACHIEVEMENT)
        state = states[definition_id]
        if not state[const.STATE_UNLOCKED] or state.get(const.STATE_CLAIMED):
            return False

        state[const.STATE_CLAIMED] = True
        await self.store.async_set(const.DATA_ACHIEVEMENTS, states)
        self.emit(
            const.EVENT_ACHIEVEMENT_CLAIMED,
            definition_id=definition_id,
            definition=definition.as_payload(),
            reward=definition.as_payload()["reward"],
            state=dict(state),
        )
        return True

    async def async_seed_snapshot(self, counters: Mapping[str, Any]) -> ProgressSnapshot:
        """Merge migrated counters into the snapshot without evaluating.

        Raises:
            PersistenceError: If the snapshot cannot be saved.
        """
        snapshot = ProgressEngine.merge_snapshot(
            self.store.get(const.DATA_PROGRESS), counters
        )
        await self.store.async_set(const.DATA_PROGRESS, snapshot)
        return snapshot

    async def async_initialize_defaults(self) -> None:
        """Write fresh snapshot and locked states for any missing key.

        Raises:
            PersistenceError: If the defaults cannot be saved.
        """
        defaults: dict[str, Any] = {}
        if const.DATA_PROGRESS not in self.store.keys():
            defaults[const.DATA_PROGRESS] = ProgressEngine.default_snapshot()
        for kind, key in _STATE_KEYS.items():
            if key not in self.store.keys():
                defaults[key] = ProgressEngine.normalize_states(
                    self.catalog.definitions(kind), None
                )
        await self.store.async_set_many(defaults)

    async def async_reset(self) -> None:
        """Reset snapshot and all unlock states to defaults.

        Raises:
            PersistenceError: If the reset cannot be saved.
        """
        await self.store.async_set_many(
            {
                const.DATA_PROGRESS: ProgressEngine.default_snapshot(),
                const.DATA_ACHIEVEMENTS: ProgressEngine.normalize_states(
                    self.catalog.achievements, None
                ),
                const.DATA_BADGES: ProgressEngine.normalize_states(
                    self.catalog.badges, None
                ),
            }
        )
        const.LOGGER.warning("WARNING: WordQuest progress has been reset")

    def _announce_unlock(
        self, kind: str, definition_id: str, state: Mapping[str, Any], mode: UnlockMode
    ) -> None:
        self.emit(
            const.EVENT_UNLOCK_RECORDED,
            **{
                const.EVENT_DATA_KIND: kind,
                const.STATE_DEFINITION_ID: definition_id,
                const.EVENT_DATA_STATE: dict(state),
                const.EVENT_DATA_MODE: str(mode),
            },
        )
