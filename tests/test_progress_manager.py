"""Tests for ProgressManager - snapshot persistence and unlock states.

ProgressManager is tested against a real WordQuestStore on mocked HA
storage. Unlock announcements are observed on the event bus; no
notification queue is attached here.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

import pytest

from custom_components.wordquest import const
from custom_components.wordquest.catalog import DEFAULT_CATALOG
from custom_components.wordquest.event_bus import WordQuestEventBus
from custom_components.wordquest.managers.progress_manager import (
    ProgressManager,
    UnlockMode,
)
from custom_components.wordquest.store import PersistenceError, WordQuestStore

Events = list[tuple[str, dict[str, Any]]]


@pytest.fixture
async def manager(store: WordQuestStore, event_bus: WordQuestEventBus) -> ProgressManager:
    """Return a set-up progress manager."""
    progress_manager = ProgressManager(store, event_bus, DEFAULT_CATALOG)
    await progress_manager.async_setup()
    return progress_manager


def recorded_unlocks(events: Events) -> list[tuple[str, str, str]]:
    """(kind, id, mode) of every unlock_recorded event."""
    return [
        (payload["kind"], payload["definition_id"], payload["mode"])
        for event_type, payload in events
        if event_type == const.EVENT_UNLOCK_RECORDED
    ]


class TestTrackProgress:
    """Tests for async_track_progress()."""

    async def test_first_word(self, manager: ProgressManager, recorded_events: Events) -> None:
        """One word unlocks the first achievement and the first badge."""
        result = await manager.async_track_progress({"words_learned": 1})

        assert result["unlocked_achievements"] == ["first_steps_1"]
        assert result["unlocked_badges"] == ["first_word"]
        assert result["level"]["level"] == 1
        assert recorded_unlocks(recorded_events) == [
            (const.KIND_ACHIEVEMENT, "first_steps_1", const.UNLOCK_MODE_NOTIFY),
            (const.KIND_BADGE, "first_word", const.UNLOCK_MODE_NOTIFY),
        ]

    async def test_multiple_unlocks_in_catalog_order(self, manager: ProgressManager) -> None:
        """A jump past several thresholds unlocks them in declaration order."""
        result = await manager.async_track_progress({"words_learned": 12})

        assert result["unlocked_achievements"] == ["first_steps_1", "word_explorer_10"]
        assert result["unlocked_badges"] == ["first_word", "word_explorer"]
        assert manager.get_total_achievement_points() == 35

    async def test_repeat_is_idempotent(
        self, manager: ProgressManager, recorded_events: Events
    ) -> None:
        """The same reading twice unlocks nothing new."""
        await manager.async_track_progress({"words_learned": 12})
        recorded_events.clear()

        result = await manager.async_track_progress({"words_learned": 12})

        assert result["unlocked_achievements"] == []
        assert result["unlocked_badges"] == []
        assert recorded_unlocks(recorded_events) == []
        assert manager.get_total_achievement_points() == 35

    async def test_snapshot_is_persisted(
        self, manager: ProgressManager, store: WordQuestStore
    ) -> None:
        """Merged readings and states are written to the store."""
        await manager.async_track_progress({"words_learned": 5, "streak_days": 2})

        stored = store.get(const.DATA_PROGRESS)
        assert stored["words_learned"] == 5
        assert stored["streak_days"] == 2
        assert store.get(const.DATA_ACHIEVEMENTS)["first_steps_1"]["unlocked"] is True

    async def test_silent_mode_is_announced_as_silent(
        self, manager: ProgressManager, recorded_events: Events
    ) -> None:
        """Silent evaluation still records unlocks, tagged silent."""
        await manager.async_seed_snapshot({"streak_days": 3})
        result = await manager.async_evaluate(UnlockMode.SILENT)

        assert result["unlocked_achievements"] == ["daily_adventurer_3"]
        assert recorded_unlocks(recorded_events) == [
            (const.KIND_ACHIEVEMENT, "daily_adventurer_3", const.UNLOCK_MODE_SILENT),
            (const.KIND_BADGE, "streak_starter", const.UNLOCK_MODE_SILENT),
        ]

    async def test_progress_updated_event(
        self, manager: ProgressManager, recorded_events: Events
    ) -> None:
        """Every tracking call publishes the merged snapshot and level."""
        await manager.async_track_progress({"words_learned": 10})

        updates = [
            payload
            for event_type, payload in recorded_events
            if event_type == const.EVENT_PROGRESS_UPDATED
        ]
        assert len(updates) == 1
        assert updates[0]["snapshot"]["words_learned"] == 10
        assert updates[0]["level"]["experience"] == 150

    async def test_failed_save_raises(
        self, manager: ProgressManager, store: WordQuestStore
    ) -> None:
        """Storage failures propagate and leave no unlock behind."""
        with (
            patch.object(store._store, "async_save", side_effect=OSError("disk full")),
            pytest.raises(PersistenceError),
        ):
            await manager.async_track_progress({"words_learned": 1})

        assert manager.get_unlocked_ids(const.KIND_ACHIEVEMENT) == []
        assert manager.snapshot["words_learned"] == 0


class TestDirectUnlock:
    """Tests for async_unlock() and async_claim_achievement()."""

    async def test_unlock_keeps_first_date(self, manager: ProgressManager) -> None:
        """A second unlock is a no-op and keeps the original date."""
        first = await manager.async_unlock(
            const.KIND_BADGE, "streak_starter", UnlockMode.SILENT, "2024-03-01T10:00:00+00:00"
        )
        second = await manager.async_unlock(
            const.KIND_BADGE, "streak_starter", UnlockMode.SILENT, "2026-01-01T00:00:00+00:00"
        )

        state = manager.get_states(const.KIND_BADGE)["streak_starter"]
        assert first is True
        assert second is False
        assert state["date_unlocked"] == "2024-03-01T10:00:00+00:00"

    async def test_unknown_id_is_rejected(self, manager: ProgressManager) -> None:
        """Ids missing from the catalog are not unlocked."""
        assert not await manager.async_unlock(
            const.KIND_ACHIEVEMENT, "retired", UnlockMode.SILENT
        )

    async def test_directly_unlocked_entry_is_not_re_evaluated(
        self, manager: ProgressManager, recorded_events: Events
    ) -> None:
        """Evaluation skips entries already unlocked by migration."""
        await manager.async_unlock(
            const.KIND_ACHIEVEMENT, "first_steps_1", UnlockMode.SILENT
        )
        recorded_events.clear()

        result = await manager.async_track_progress({"words_learned": 1})

        assert result["unlocked_achievements"] == []
        assert result["unlocked_badges"] == ["first_word"]

    async def test_claim_once(
        self, manager: ProgressManager, recorded_events: Events
    ) -> None:
        """Unlocked achievements can be claimed exactly once."""
        await manager.async_track_progress({"words_learned": 1})

        assert await manager.async_claim_achievement("first_steps_1")
        assert not await manager.async_claim_achievement("first_steps_1")
        assert not await manager.async_claim_achievement("word_explorer_10")
        assert not await manager.async_claim_achievement("retired")

        claims = [
            payload
            for event_type, payload in recorded_events
            if event_type == const.EVENT_ACHIEVEMENT_CLAIMED
        ]
        assert len(claims) == 1
        assert claims[0]["reward"]["value"] == 10


class TestReads:
    """Tests for read-only views."""

    async def test_views_include_state_and_percent(self, manager: ProgressManager) -> None:
        """Merged views carry definition, state and progress percent."""
        await manager.async_track_progress({"words_learned": 5})

        achievements = {item["id"]: item for item in manager.get_achievements()}
        assert achievements["first_steps_1"]["state"]["unlocked"] is True
        assert achievements["word_explorer_10"]["progress_percent"] == 50.0
        assert len(manager.get_badges()) == len(DEFAULT_CATALOG.badges)

    async def test_grouping_and_collection(self, manager: ProgressManager) -> None:
        """Category grouping and the badge collection reflect unlocks."""
        await manager.async_track_progress({"words_learned": 12, "streak_days": 3})

        grouped = manager.get_achievements_by_category()
        collection = manager.get_badge_collection()
        assert const.CATEGORY_STREAK in grouped
        assert collection["earned_badges"] == 3
        assert collection["prestige_level"] == 1

    async def test_next_achievable(self, manager: ProgressManager) -> None:
        """Closest locked badges are listed first."""
        await manager.async_track_progress({"words_learned": 20})

        upcoming = manager.get_next_achievable_badges(limit=1)

        assert [item["id"] for item in upcoming] == ["vocabulary_builder"]
        assert upcoming[0]["progress_percent"] == 80.0

    async def test_level_and_milestones(self, manager: ProgressManager) -> None:
        """Level is derived from words learned on every read."""
        await manager.async_track_progress({"words_learned": 100})

        assert manager.get_level_progress()["level"] == 6
        assert all(m["is_reached"] for m in manager.get_milestones())


class TestInitializeAndReset:
    """Tests for async_initialize_defaults() and async_reset()."""

    async def test_initialize_defaults_keeps_existing(
        self, manager: ProgressManager, store: WordQuestStore
    ) -> None:
        """Only missing keys are written."""
        await store.async_set(const.DATA_PROGRESS, {"words_learned": 7})

        await manager.async_initialize_defaults()

        assert store.get(const.DATA_PROGRESS) == {"words_learned": 7}
        assert set(store.get(const.DATA_BADGES)) == {
            badge.id for badge in DEFAULT_CATALOG.badges
        }

    async def test_reset(self, manager: ProgressManager) -> None:
        """Reset returns to a fresh learner."""
        await manager.async_track_progress({"words_learned": 30})

        await manager.async_reset()

        assert manager.snapshot["words_learned"] == 0
        assert manager.get_unlocked_ids(const.KIND_BADGE) == []
        assert manager.get_total_achievement_points() == 0
