"""Type definitions for WordQuest data structures.

TypedDicts describe the persisted JSON structures (progress snapshot, unlock
state, migration marker, backups, rollups) and the engine result contracts.
Keyed collections whose keys are definition ids or week keys stay
``dict[str, Any]`` style mappings.

IMPORTANT: This file must NOT import from coordinator.py, managers or helpers
to avoid circular dependencies. Only typing machinery is imported here.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime validation of loaded data
(None checks, .get() defaults) stays in the engines and managers.
"""

from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

DefinitionId = str  # Catalog id, e.g. "word_explorer_10"
DefinitionKind = Literal["achievement", "badge"]
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
WeekKey = str  # ISO week key "2026-W03"


# =============================================================================
# Progress & Unlock State
# =============================================================================


class ProgressSnapshot(TypedDict):
    """Cumulative learner metrics used to evaluate unlock conditions.

    Counters never decrease; accuracy_percent is replaced freely.
    categories_completed is stored as a sorted list with set semantics.
    """

    words_learned: int
    streak_days: int
    accuracy_percent: float
    categories_completed: list[str]
    quiz_score: int
    session_count: int
    best_completion_seconds: float | None  # Lower is better, None until measured
    last_updated: NotRequired[ISODatetime | None]


class ProgressDelta(TypedDict, total=False):
    """Absolute cumulative readings reported by gameplay code.

    Every key is optional; missing keys leave the stored value unchanged.
    """

    words_learned: int
    streak_days: int
    accuracy_percent: float
    categories_completed: list[str]
    quiz_score: int
    session_count: int
    best_completion_seconds: float


class UnlockState(TypedDict):
    """Per-definition unlock state (shared by achievements and badges).

    Once unlocked is True it never reverts.
    """

    definition_id: DefinitionId
    current_progress: float
    unlocked: bool
    date_unlocked: ISODatetime | None
    claimed: NotRequired[bool]  # Achievements only


# Persisted mapping: definition_id -> UnlockState
UnlockStates = dict[str, UnlockState]


class LevelState(TypedDict):
    """Derived level information, recomputed on every read."""

    experience: int
    level: int
    next_level_threshold: int
    current_level_floor: int
    progress_percent: float


class MilestoneInfo(TypedDict):
    """One fixed word milestone and whether it has been reached."""

    words: int
    bonus_experience: int
    name: str
    is_reached: bool


# =============================================================================
# Engine Result Contracts
# =============================================================================


class EvaluationBatch(TypedDict):
    """Result of one ProgressEngine.evaluate() call.

    unlocked_now preserves catalog declaration order.
    """

    unlocked_now: list[DefinitionId]
    states: UnlockStates


class TrackResult(TypedDict):
    """Result of ProgressManager.async_track_progress()."""

    snapshot: ProgressSnapshot
    unlocked_achievements: list[DefinitionId]
    unlocked_badges: list[DefinitionId]
    level: LevelState


class BadgeCollection(TypedDict):
    """Aggregated view of earned badges."""

    total_badges: int
    earned_badges: int
    completion_percent: float
    by_category: dict[str, int]
    by_tier: dict[str, int]
    by_rarity: dict[str, int]
    total_coins: int
    total_xp: int
    total_value: int
    prestige_level: int


# =============================================================================
# Notification Queue
# =============================================================================


class NotificationEntry(TypedDict):
    """One queued unlock celebration."""

    definition_id: DefinitionId
    kind: DefinitionKind
    payload: dict[str, Any]
    enqueued_at: ISODatetime


class QueueStatus(TypedDict):
    """Read-only view of the notification queue."""

    queue_length: int
    is_displaying: bool
    current: DefinitionId | None
    next: DefinitionId | None


class QueueAnalytics(TypedDict):
    """Display counters collected by the notification queue."""

    total_enqueued: int
    total_deduplicated: int
    total_displayed: int
    acknowledged: int
    timed_out: int
    cleared: int
    average_wait_seconds: float


# =============================================================================
# Legacy Records (tagged union, schema tag decides the field layout)
# =============================================================================


class LegacyAchievementRecord(TypedDict):
    """One legacy achievement, normalized from a v1 list or v2 tracker."""

    schema: Literal["v1", "v2"]
    source_key: str
    legacy_id: str
    unlocked: bool
    unlocked_at: ISODatetime | None


class LegacyProgressRecord(TypedDict):
    """Legacy aggregate counters, normalized from a tagged source record."""

    schema: Literal["v1", "v2"]
    source_key: str
    words_learned: int | None
    streak_days: int | None
    accuracy_percent: float | None
    categories_completed: list[str]
    quiz_score: int | None
    session_count: int | None


class QuarantinedRecord(TypedDict):
    """Legacy record whose shape could not be recognized."""

    source_key: str
    reason: str
    raw: Any


class LegacyDataset(TypedDict):
    """Everything parsed out of the legacy keys in one pass."""

    achievements: list[LegacyAchievementRecord]
    progress: list[LegacyProgressRecord]
    quarantined: list[QuarantinedRecord]
    present_keys: list[str]


# =============================================================================
# Migration
# =============================================================================


class MigrationRecord(TypedDict):
    """Persisted completion marker; written only after every step succeeds."""

    migration_id: str
    timestamp: ISODatetime
    completed: bool
    version: str
    counts: dict[str, int]
    errors: list[str]


class MigrationResult(TypedDict):
    """Outcome of one LegacyMigrator.async_migrate() run."""

    success: bool
    skipped: bool
    migrated_achievements: int
    migrated_badges: int
    migrated_progress: int
    errors: list[str]
    migration_id: str
    timestamp: ISODatetime
    legacy_data_found: bool
    quarantined: int
    backup_key: str | None
    details: list[str]


class MigrationStatus(TypedDict):
    """Answer of get_migration_status()."""

    completed: bool
    has_legacy_data: bool
    record: MigrationRecord | None


class LegacyBackup(TypedDict):
    """Verbatim copy of the legacy keys taken before migration."""

    backed_up_at: ISODatetime
    migration_id: str
    data: dict[str, Any]


class WeeklyRollup(TypedDict):
    """One analytics rollup entry keyed by ISO week."""

    week: WeekKey
    words_learned: int
    sessions_completed: int
    time_spent_minutes: int
    accuracy_percent: float
    streak_days: int
    source: str
    recorded_at: ISODatetime
