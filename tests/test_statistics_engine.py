"""Tests for StatisticsEngine weekly rollups."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from custom_components.wordquest.engines.statistics_engine import (
    ROLLUP_SOURCE_MIGRATION,
    StatisticsEngine,
)


@pytest.fixture
def stats() -> StatisticsEngine:
    """Return a statistics engine."""
    return StatisticsEngine()


class TestWeekKeys:
    """Tests for get_week_key()."""

    def test_monday_starts_new_week(self, stats: StatisticsEngine) -> None:
        """2026-01-19 is the Monday of ISO week 4."""
        assert stats.get_week_key(date(2026, 1, 19)) == "2026-W04"
        assert stats.get_week_key(date(2026, 1, 18)) == "2026-W03"

    def test_iso_year_is_used(self, stats: StatisticsEngine) -> None:
        """The first days of January can belong to the previous ISO year."""
        assert stats.get_week_key(datetime(2021, 1, 1, tzinfo=UTC)) == "2020-W53"


class TestRollups:
    """Tests for build_weekly_rollup(), record_weekly_rollup(), prune_weekly()."""

    def test_build_from_counters(self, stats: StatisticsEngine) -> None:
        """Time spent is estimated from the session count."""
        moment = datetime(2026, 1, 19, 8, 30, tzinfo=UTC)

        entry = stats.build_weekly_rollup(
            {"words_learned": 42, "session_count": 6, "accuracy_percent": 88.5},
            moment,
        )

        assert entry["week"] == "2026-W04"
        assert entry["words_learned"] == 42
        assert entry["sessions_completed"] == 6
        assert entry["time_spent_minutes"] == 90
        assert entry["accuracy_percent"] == 88.5
        assert entry["streak_days"] == 0
        assert entry["source"] == ROLLUP_SOURCE_MIGRATION
        assert entry["recorded_at"] == moment.isoformat()

    def test_recording_same_week_replaces(self, stats: StatisticsEngine) -> None:
        """A retried rollup overwrites the week instead of adding to it."""
        moment = datetime(2026, 1, 19, tzinfo=UTC)
        rollups: dict = {}

        first = stats.record_weekly_rollup(
            rollups, stats.build_weekly_rollup({"words_learned": 10}, moment)
        )
        second = stats.record_weekly_rollup(
            rollups, stats.build_weekly_rollup({"words_learned": 12}, moment)
        )

        assert first is False
        assert second is True
        assert list(rollups) == ["2026-W04"]
        assert rollups["2026-W04"]["words_learned"] == 12

    def test_prune_drops_oldest_weeks(self, stats: StatisticsEngine) -> None:
        """Only the newest weeks are kept."""
        rollups = {f"2025-W{week:02d}": {} for week in range(1, 6)}

        removed = stats.prune_weekly(rollups, retention=2)

        assert removed == 3
        assert sorted(rollups) == ["2025-W04", "2025-W05"]
        assert stats.prune_weekly(rollups, retention=10) == 0
