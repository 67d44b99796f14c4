"""Statistics Engine - Weekly analytics rollups for learner progress.

The analytics screens read one rollup entry per ISO week. Migration writes a
single entry for the week it runs in, built from legacy aggregate counters;
recording the same week again replaces the entry rather than adding to it,
so a retried migration cannot double count.

Design Principles:
    - Stateless: operates on passed data structures, never persists
    - Consistent: single source of truth for week keys ("2026-W03")
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Final

from .. import const
from ..utils.dt_utils import dt_now_utc, dt_week_key

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..type_defs import WeeklyRollup

# Default number of weekly entries kept by prune_weekly()
DEFAULT_WEEKLY_RETENTION: Final = 52

ROLLUP_SOURCE_MIGRATION: Final = "legacy_migration"


class StatisticsEngine:
    """Stateless engine for weekly rollup entries.

    Example:
        stats = StatisticsEngine()
        entry = stats.build_weekly_rollup({"words_learned": 42, "session_count": 6})
        stats.record_weekly_rollup(rollups, entry)
    """

    # ────────────────────────────────────────────────────────────────
    # Week Key Generation
    # ────────────────────────────────────────────────────────────────

    def get_week_key(self, reference: date | datetime | None = None) -> str:
        """Return the ISO week key for a date (defaults to now in UTC).

        Example:
            >>> stats.get_week_key(date(2026, 1, 19))
            '2026-W04'
        """
        if reference is None:
            return dt_week_key(dt_now_utc())
        if not isinstance(reference, datetime):
            reference = datetime.combine(reference, datetime.min.time())
        return dt_week_key(reference)

    # ────────────────────────────────────────────────────────────────
    # Rollups
    # ────────────────────────────────────────────────────────────────

    def build_weekly_rollup(
        self,
        counters: Mapping[str, Any],
        reference: datetime | None = None,
        source: str = ROLLUP_SOURCE_MIGRATION,
    ) -> WeeklyRollup:
        """Convert aggregate counters into one weekly rollup entry.

        time_spent_minutes is estimated as sessions * LEGACY_MINUTES_PER_SESSION.

        Args:
            counters: Aggregated counters (snapshot field names)
            reference: Moment the rollup belongs to (defaults to now)
            source: Tag describing who produced the entry

        Returns:
            WeeklyRollup ready to be stored under its week key.
        """
        moment = reference or dt_now_utc()
        sessions = int(counters.get(const.PROGRESS_SESSION_COUNT) or 0)
        return {
            "week": self.get_week_key(moment),
            "words_learned": int(counters.get(const.PROGRESS_WORDS_LEARNED) or 0),
            "sessions_completed": sessions,
            "time_spent_minutes": sessions * const.LEGACY_MINUTES_PER_SESSION,
            "accuracy_percent": float(
                counters.get(const.PROGRESS_ACCURACY_PERCENT) or 0.0
            ),
            "streak_days": int(counters.get(const.PROGRESS_STREAK_DAYS) or 0),
            "source": source,
            "recorded_at": moment.isoformat(),
        }

    def record_weekly_rollup(
        self, rollups: dict[str, Any], entry: WeeklyRollup
    ) -> bool:
        """Store an entry under its week key, replacing any previous entry.

        Returns:
            True if the week already had an entry that was replaced.
        """
        replaced = entry["week"] in rollups
        rollups[entry["week"]] = dict(entry)
        return replaced

    def prune_weekly(
        self, rollups: dict[str, Any], retention: int = DEFAULT_WEEKLY_RETENTION
    ) -> int:
        """Drop the oldest week entries beyond the retention count.

        Week keys sort chronologically as strings.

        Returns:
            Number of entries removed.
        """
        if retention < 0 or len(rollups) <= retention:
            return 0
        stale = sorted(rollups)[: len(rollups) - retention]
        for week_key in stale:
            del rollups[week_key]
        return len(stale)
