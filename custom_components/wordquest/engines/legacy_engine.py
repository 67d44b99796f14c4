"""Legacy Engine - Pure parsing of pre-2.0 persisted WordQuest records.

Older releases stored progress under several loosely structured keys. This
engine turns them into a tagged union keyed by schema version:

- v1: ``achievements`` as a flat list, ``userProgress`` / ``childStats``
  counters (``accuracy``, ``currentStreak``, ``sessionCount`` ...)
- v2: ``achievementTracker`` objects and ``learningProgress`` counters
  (``totalAccuracy``, ``streakDays``, ``categoriesExplored`` ...)

An explicit ``schemaVersion``/``version`` field wins over shape detection.
Records whose shape matches neither schema are routed to a quarantine list
instead of being coerced with defaults.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
The LegacyMigrator owns all reads and writes.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils import dt_utils
from ..utils.math_utils import clamp, coerce_number, round_half_up

if TYPE_CHECKING:
    from ..type_defs import (
        LegacyAchievementRecord,
        LegacyDataset,
        LegacyProgressRecord,
        QuarantinedRecord,
    )

# =============================================================================
# FIELD ALIASES PER SCHEMA
# =============================================================================

# Explicit version tag fields, checked in order
_VERSION_FIELDS = ("schemaVersion", "schema_version", "version")

_ACHIEVEMENT_ID_FIELDS = ("id", "achievementId")
_ACHIEVEMENT_UNLOCKED_FIELDS = ("unlocked", "isUnlocked", "completed")
_ACHIEVEMENT_DATE_FIELDS = ("unlockedAt", "dateUnlocked", "unlockedDate", "completedAt")

# (snapshot field, legacy aliases) per schema
_PROGRESS_FIELDS: dict[str, tuple[tuple[str, tuple[str, ...]], ...]] = {
    const.LEGACY_SCHEMA_V1: (
        (const.PROGRESS_WORDS_LEARNED, ("wordsLearned", "totalWordsLearned")),
        (const.PROGRESS_STREAK_DAYS, ("currentStreak", "streak")),
        (const.PROGRESS_ACCURACY_PERCENT, ("accuracy", "averageAccuracy")),
        (const.PROGRESS_QUIZ_SCORE, ("quizScore", "bestQuizScore")),
        (const.PROGRESS_SESSION_COUNT, ("sessionCount", "sessionsCompleted")),
    ),
    const.LEGACY_SCHEMA_V2: (
        (const.PROGRESS_WORDS_LEARNED, ("wordsLearned", "totalWords")),
        (const.PROGRESS_STREAK_DAYS, ("streakDays", "longestStreak")),
        (const.PROGRESS_ACCURACY_PERCENT, ("totalAccuracy",)),
        (const.PROGRESS_QUIZ_SCORE, ("bestQuizScore", "quizScore")),
        (const.PROGRESS_SESSION_COUNT, ("totalSessions", "sessionCount")),
    ),
}

_CATEGORY_FIELDS: dict[str, tuple[str, ...]] = {
    const.LEGACY_SCHEMA_V1: ("categoriesCompleted", "completedCategories"),
    const.LEGACY_SCHEMA_V2: ("categoriesExplored", "categoriesCompleted"),
}

# Fields that only ever appeared in one schema (used for shape detection)
_V2_MARKERS = frozenset({"totalAccuracy", "streakDays", "categoriesExplored", "totalSessions"})
_V1_MARKERS = frozenset(
    {
        "wordsLearned",
        "totalWordsLearned",
        "accuracy",
        "currentStreak",
        "sessionCount",
        "sessionsCompleted",
    }
)

# Source key priority when several records report accuracy (first wins)
_ACCURACY_PRIORITY = (
    const.LEGACY_KEY_LEARNING_PROGRESS,
    const.LEGACY_KEY_USER_PROGRESS,
    const.LEGACY_KEY_CHILD_STATS,
)

_ACHIEVEMENT_KEYS = (const.LEGACY_KEY_ACHIEVEMENTS, const.LEGACY_KEY_ACHIEVEMENT_TRACKER)
_PROGRESS_KEYS = (
    const.LEGACY_KEY_USER_PROGRESS,
    const.LEGACY_KEY_LEARNING_PROGRESS,
    const.LEGACY_KEY_CHILD_STATS,
)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class LegacyRecordError(ValueError):
    """Raised when a legacy record cannot be recognized or decoded.

    Attributes:
        source_key: Legacy storage key the record came from
        reason: Human-readable description of the problem
        raw: The offending value (kept for quarantine)
    """

    def __init__(self, source_key: str, reason: str, raw: Any = None) -> None:
        """Initialize LegacyRecordError.

        Args:
            source_key: Legacy storage key the record came from
            reason: Human-readable description of the problem
            raw: The offending value
        """
        self.source_key = source_key
        self.reason = reason
        self.raw = raw
        super().__init__(f"Invalid legacy record in '{source_key}': {reason}")


# =============================================================================
# LEGACY ENGINE
# =============================================================================


class LegacyEngine:
    """Pure logic engine for legacy record parsing and badge rules.

    All methods are static - no instance state.
    """

    # =========================================================================
    # DETECTION & DECODING
    # =========================================================================

    @staticmethod
    def detect_present_keys(data: Mapping[str, Any]) -> list[str]:
        """Return the known legacy keys holding a non-empty value."""
        return [
            key
            for key in const.LEGACY_KEYS
            if key in data and data[key] not in (None, "", [], {})
        ]

    @staticmethod
    def decode(source_key: str, raw: Any) -> Any:
        """Decode a legacy value that may have been stored as a JSON string.

        Raises:
            LegacyRecordError: If a string value is not valid JSON.
        """
        if not isinstance(raw, str):
            return raw
        try:
            return json.loads(raw)
        except json.JSONDecodeError as err:
            raise LegacyRecordError(source_key, f"invalid JSON ({err.msg})", raw) from err

    @staticmethod
    def detect_schema(record: Mapping[str, Any]) -> str:
        """Return the schema tag of a progress record.

        An explicit version field wins; otherwise the record shape decides.
        Returns LEGACY_SCHEMA_UNKNOWN when neither applies.
        """
        for version_field in _VERSION_FIELDS:
            version = coerce_number(record.get(version_field))
            if version is None:
                continue
            if int(version) == 1:
                return const.LEGACY_SCHEMA_V1
            if int(version) == 2:
                return const.LEGACY_SCHEMA_V2
            return const.LEGACY_SCHEMA_UNKNOWN

        keys = set(record)
        if keys & _V2_MARKERS:
            return const.LEGACY_SCHEMA_V2
        if keys & _V1_MARKERS:
            return const.LEGACY_SCHEMA_V1
        return const.LEGACY_SCHEMA_UNKNOWN

    # =========================================================================
    # ACHIEVEMENTS
    # =========================================================================

    @staticmethod
    def _first_field(record: Mapping[str, Any], fields: tuple[str, ...]) -> Any:
        for field_name in fields:
            if field_name in record:
                return record[field_name]
        return None

    @classmethod
    def parse_achievement_item(
        cls,
        source_key: str,
        schema: str,
        item: Any,
        fallback_id: str | None = None,
    ) -> LegacyAchievementRecord:
        """Normalize one legacy achievement entry.

        Raises:
            LegacyRecordError: If the entry has no string id or no boolean
                unlocked flag.
        """
        if not isinstance(item, Mapping):
            raise LegacyRecordError(source_key, "achievement entry is not an object", item)

        legacy_id = cls._first_field(item, _ACHIEVEMENT_ID_FIELDS) or fallback_id
        if not isinstance(legacy_id, str) or not legacy_id:
            raise LegacyRecordError(source_key, "achievement entry has no id", item)

        unlocked = cls._first_field(item, _ACHIEVEMENT_UNLOCKED_FIELDS)
        if not isinstance(unlocked, bool):
            raise LegacyRecordError(
                source_key, f"achievement '{legacy_id}' has no unlocked flag", item
            )

        return {
            "schema": schema,  # type: ignore[typeddict-item]
            "source_key": source_key,
            "legacy_id": legacy_id,
            "unlocked": unlocked,
            "unlocked_at": dt_utils.dt_to_utc_iso(
                cls._first_field(item, _ACHIEVEMENT_DATE_FIELDS)
            ),
        }

    @classmethod
    def parse_achievements(
        cls, source_key: str, raw: Any
    ) -> tuple[list[LegacyAchievementRecord], list[QuarantinedRecord]]:
        """Parse a legacy achievement container.

        Accepted shapes:
        - v1: ``[{"id": ..., "unlocked": ...}, ...]``
        - v2: ``{"achievements": [...]}`` or ``{"achievements": {id: {...}}}``
        - v2: ``{id: {"unlocked": ...}, ...}`` (tracker keyed by id)

        Malformed entries are quarantined individually; the container itself
        raises when its shape is unrecognized.

        Raises:
            LegacyRecordError: If the container shape is not recognized.
        """
        decoded = cls.decode(source_key, raw)
        records: list[LegacyAchievementRecord] = []
        quarantined: list[QuarantinedRecord] = []

        items: list[tuple[str | None, Any]]
        if isinstance(decoded, list):
            schema = const.LEGACY_SCHEMA_V1
            items = [(None, item) for item in decoded]
        elif isinstance(decoded, Mapping):
            schema = const.LEGACY_SCHEMA_V2
            inner = decoded.get("achievements", decoded)
            if isinstance(inner, list):
                items = [(None, item) for item in inner]
            elif isinstance(inner, Mapping):
                items = [
                    (str(key), value)
                    for key, value in inner.items()
                    if key not in _VERSION_FIELDS
                ]
            else:
                raise LegacyRecordError(
                    source_key, "achievement tracker has no achievement list", decoded
                )
        else:
            raise LegacyRecordError(
                source_key, f"unsupported achievement container {type(decoded).__name__}", decoded
            )

        for fallback_id, item in items:
            try:
                records.append(
                    cls.parse_achievement_item(source_key, schema, item, fallback_id)
                )
            except LegacyRecordError as err:
                const.LOGGER.warning("WARNING: Quarantining legacy record: %s", err)
                quarantined.append(
                    {"source_key": source_key, "reason": err.reason, "raw": item}
                )

        return records, quarantined

    @staticmethod
    def map_achievement_id(legacy_id: str) -> str | None:
        """Map a legacy achievement id to its current id, or None if unknown."""
        return const.LEGACY_ACHIEVEMENT_ID_MAP.get(legacy_id)

    # =========================================================================
    # PROGRESS COUNTERS
    # =========================================================================

    @classmethod
    def parse_progress(cls, source_key: str, raw: Any) -> LegacyProgressRecord:
        """Normalize one legacy progress/stats record.

        Raises:
            LegacyRecordError: If the record is not an object, its schema is
                unknown, or a recognized counter holds a non-numeric value.
        """
        decoded = cls.decode(source_key, raw)
        if not isinstance(decoded, Mapping):
            raise LegacyRecordError(source_key, "progress record is not an object", decoded)

        schema = cls.detect_schema(decoded)
        if schema == const.LEGACY_SCHEMA_UNKNOWN:
            raise LegacyRecordError(source_key, "unrecognized progress schema", decoded)

        record: dict[str, Any] = {
            "schema": schema,
            "source_key": source_key,
            "categories_completed": [],
        }
        for snapshot_field, aliases in _PROGRESS_FIELDS[schema]:
            value = cls._first_field(decoded, aliases)
            if value is None:
                record[snapshot_field] = None
                continue
            number = coerce_number(value)
            if number is None or number < 0:
                raise LegacyRecordError(
                    source_key, f"{snapshot_field} is not a valid number: {value!r}", decoded
                )
            if snapshot_field == const.PROGRESS_ACCURACY_PERCENT:
                record[snapshot_field] = clamp(number, 0.0, 100.0)
            else:
                record[snapshot_field] = int(number)

        categories = cls._first_field(decoded, _CATEGORY_FIELDS[schema])
        if isinstance(categories, list):
            record["categories_completed"] = sorted(
                {str(category) for category in categories if category}
            )

        return record  # type: ignore[return-value]

    @staticmethod
    def aggregate_progress(records: list[LegacyProgressRecord]) -> dict[str, Any]:
        """Fold progress records into one set of counters.

        Counters take the maximum over all records; accuracy comes from the
        highest-priority source that reports it; categories are unioned.
        Counters no record reports are omitted.
        """
        counters: dict[str, Any] = {}
        for snapshot_field in const.PROGRESS_MONOTONIC_COUNTERS:
            values = [
                record[snapshot_field]  # type: ignore[literal-required]
                for record in records
                if record.get(snapshot_field) is not None
            ]
            if values:
                counters[snapshot_field] = max(values)

        by_source = {record["source_key"]: record for record in records}
        for source_key in _ACCURACY_PRIORITY:
            record = by_source.get(source_key)
            if record and record.get(const.PROGRESS_ACCURACY_PERCENT) is not None:
                counters[const.PROGRESS_ACCURACY_PERCENT] = record[
                    const.PROGRESS_ACCURACY_PERCENT
                ]
                break

        categories: set[str] = set()
        for record in records:
            categories.update(record.get("categories_completed", []))
        if categories:
            counters[const.PROGRESS_CATEGORIES_COMPLETED] = sorted(categories)

        return counters

    @staticmethod
    def derive_badges(counters: Mapping[str, Any]) -> list[str]:
        """Apply the fixed legacy badge rules to aggregated counters.

        Each rule is independent; the result keeps rule order without
        duplicates.
        """
        earned: list[str] = []
        for snapshot_field, minimum, badge_id in const.LEGACY_BADGE_RULES:
            value = coerce_number(counters.get(snapshot_field))
            if value is None:
                continue
            if snapshot_field == const.PROGRESS_ACCURACY_PERCENT:
                value = float(round_half_up(value))
            if value >= minimum and badge_id not in earned:
                earned.append(badge_id)
        return earned

    # =========================================================================
    # DATASET
    # =========================================================================

    @classmethod
    def parse_dataset(cls, data: Mapping[str, Any]) -> LegacyDataset:
        """Parse every present legacy key into one dataset.

        Never raises: unrecognized records land in ``quarantined``.
        """
        present = cls.detect_present_keys(data)
        achievements: list[LegacyAchievementRecord] = []
        progress: list[LegacyProgressRecord] = []
        quarantined: list[QuarantinedRecord] = []

        for source_key in present:
            raw = data[source_key]
            try:
                if source_key in _ACHIEVEMENT_KEYS:
                    records, rejected = cls.parse_achievements(source_key, raw)
                    achievements.extend(records)
                    quarantined.extend(rejected)
                elif source_key in _PROGRESS_KEYS:
                    progress.append(cls.parse_progress(source_key, raw))
            except LegacyRecordError as err:
                const.LOGGER.warning("WARNING: Quarantining legacy record: %s", err)
                quarantined.append(
                    {"source_key": source_key, "reason": err.reason, "raw": raw}
                )

        return {
            "achievements": achievements,
            "progress": progress,
            "quarantined": quarantined,
            "present_keys": present,
        }
