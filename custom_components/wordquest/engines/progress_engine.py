"""Progress Engine - Pure logic for achievement and badge unlock evaluation.

This engine provides stateless, pure Python functions for:
- Progress snapshot defaults and monotonic merging of gameplay readings
- Requirement resolution (requirement type -> snapshot field)
- Unlock evaluation in catalog declaration order
- Collection summaries (points, badge collection, next achievable badges)

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
State persistence, unlock modes and notifications belong in ProgressManager.

FAIL-SAFE CONTRACT: evaluate() never raises. Unknown requirement types
resolve to progress 0 and never unlock; malformed state entries are rebuilt
as fresh locked states.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
import copy
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.math_utils import (
    calculate_percentage,
    clamp,
    coerce_number,
    round_half_up,
)

if TYPE_CHECKING:
    from ..catalog import (
        AchievementDefinition,
        BadgeDefinition,
        Definition,
        Requirement,
    )
    from ..type_defs import (
        BadgeCollection,
        EvaluationBatch,
        ProgressSnapshot,
        UnlockState,
        UnlockStates,
    )


def _now_iso() -> str:
    """Return current UTC time as ISO string (engine-internal helper)."""
    return datetime.now(UTC).isoformat()


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Resolver signature: snapshot -> comparable value (None = no reading yet)
ProgressResolver = Callable[["ProgressSnapshot"], "float | None"]


# =============================================================================
# PROGRESS ENGINE
# =============================================================================


class ProgressEngine:
    """Pure logic engine for unlock evaluation.

    All methods are static - no instance state. This enables easy unit testing
    without any Home Assistant mocking.

    Evaluation Flow:
        1. Manager merges gameplay readings into the stored snapshot
        2. Engine resolves each locked definition's requirement against it
        3. Engine returns newly unlocked ids (catalog order) plus new states
        4. Manager persists states and decides whether to notify
    """

    # =========================================================================
    # REQUIREMENT RESOLVER REGISTRY
    # =========================================================================

    # Maps requirement type to a resolver returning the comparable value
    _RESOLVERS: dict[str, ProgressResolver] = {}

    @classmethod
    def _register_resolvers(cls) -> None:
        """Register all requirement resolvers.

        Called lazily by the evaluation entry points to populate _RESOLVERS.
        """
        if cls._RESOLVERS:
            return  # Already registered

        cls._RESOLVERS = {
            const.REQUIREMENT_WORDS_LEARNED: cls._resolve_words_learned,
            const.REQUIREMENT_STREAK_DAYS: cls._resolve_streak_days,
            const.REQUIREMENT_OVERALL_ACCURACY: cls._resolve_overall_accuracy,
            const.REQUIREMENT_CATEGORIES_COMPLETED: (
                cls._resolve_categories_completed
            ),
            const.REQUIREMENT_QUIZ_SCORE: cls._resolve_quiz_score,
            const.REQUIREMENT_SESSION_COUNT: cls._resolve_session_count,
            const.REQUIREMENT_SPEED_COMPLETION: cls._resolve_speed_completion,
        }

    @staticmethod
    def _resolve_words_learned(snapshot: ProgressSnapshot) -> float | None:
        return coerce_number(snapshot.get(const.PROGRESS_WORDS_LEARNED))

    @staticmethod
    def _resolve_streak_days(snapshot: ProgressSnapshot) -> float | None:
        return coerce_number(snapshot.get(const.PROGRESS_STREAK_DAYS))

    @staticmethod
    def _resolve_overall_accuracy(snapshot: ProgressSnapshot) -> float | None:
        # Compared as a rounded whole percentage
        accuracy = coerce_number(snapshot.get(const.PROGRESS_ACCURACY_PERCENT))
        if accuracy is None:
            return None
        return float(round_half_up(accuracy))

    @staticmethod
    def _resolve_categories_completed(snapshot: ProgressSnapshot) -> float | None:
        categories = snapshot.get(const.PROGRESS_CATEGORIES_COMPLETED) or []
        if not isinstance(categories, list | tuple | set | frozenset):
            return None
        return float(len(set(categories)))

    @staticmethod
    def _resolve_quiz_score(snapshot: ProgressSnapshot) -> float | None:
        return coerce_number(snapshot.get(const.PROGRESS_QUIZ_SCORE))

    @staticmethod
    def _resolve_session_count(snapshot: ProgressSnapshot) -> float | None:
        return coerce_number(snapshot.get(const.PROGRESS_SESSION_COUNT))

    @staticmethod
    def _resolve_speed_completion(snapshot: ProgressSnapshot) -> float | None:
        seconds = coerce_number(snapshot.get(const.PROGRESS_BEST_COMPLETION_SECONDS))
        if seconds is None or seconds <= 0:
            return None
        return seconds

    # =========================================================================
    # SNAPSHOT OPERATIONS
    # =========================================================================

    @staticmethod
    def default_snapshot() -> ProgressSnapshot:
        """Return a fresh snapshot for a learner with no history."""
        return {
            const.PROGRESS_WORDS_LEARNED: 0,
            const.PROGRESS_STREAK_DAYS: 0,
            const.PROGRESS_ACCURACY_PERCENT: 0.0,
            const.PROGRESS_CATEGORIES_COMPLETED: [],
            const.PROGRESS_QUIZ_SCORE: 0,
            const.PROGRESS_SESSION_COUNT: 0,
            const.PROGRESS_BEST_COMPLETION_SECONDS: None,
            const.PROGRESS_LAST_UPDATED: None,
        }  # type: ignore[return-value]

    @staticmethod
    def normalize_snapshot(raw: Mapping[str, Any] | None) -> ProgressSnapshot:
        """Coerce a loaded snapshot into a well-formed one.

        Missing or non-numeric fields fall back to defaults so a damaged
        store entry can never break evaluation.
        """
        snapshot = ProgressEngine.default_snapshot()
        if not isinstance(raw, Mapping):
            return snapshot

        for field_name in const.PROGRESS_MONOTONIC_COUNTERS:
            value = coerce_number(raw.get(field_name))
            if value is not None and value > 0:
                snapshot[field_name] = int(value)  # type: ignore[literal-required]

        accuracy = coerce_number(raw.get(const.PROGRESS_ACCURACY_PERCENT))
        if accuracy is not None:
            snapshot[const.PROGRESS_ACCURACY_PERCENT] = clamp(accuracy, 0.0, 100.0)

        categories = raw.get(const.PROGRESS_CATEGORIES_COMPLETED)
        if isinstance(categories, list | tuple | set | frozenset):
            snapshot[const.PROGRESS_CATEGORIES_COMPLETED] = sorted(
                {str(category) for category in categories}
            )

        best = coerce_number(raw.get(const.PROGRESS_BEST_COMPLETION_SECONDS))
        if best is not None and best > 0:
            snapshot[const.PROGRESS_BEST_COMPLETION_SECONDS] = best

        last_updated = raw.get(const.PROGRESS_LAST_UPDATED)
        if isinstance(last_updated, str):
            snapshot[const.PROGRESS_LAST_UPDATED] = last_updated

        return snapshot

    @staticmethod
    def merge_snapshot(
        current: Mapping[str, Any] | None,
        delta: Mapping[str, Any],
        now_iso: str | None = None,
    ) -> ProgressSnapshot:
        """Merge absolute gameplay readings into a snapshot.

        Merge rules:
        - words_learned, streak_days, quiz_score, session_count: max (never decrease)
        - accuracy_percent: replaced (clamped to 0-100)
        - categories_completed: set union
        - best_completion_seconds: min over positive readings

        Keys missing from ``delta`` and values that are not numeric are left
        unchanged.

        Args:
            current: Stored snapshot (None for a fresh learner)
            delta: Readings reported by gameplay code
            now_iso: Timestamp recorded as last_updated

        Returns:
            New merged snapshot; inputs are not mutated.
        """
        merged = ProgressEngine.normalize_snapshot(current)

        for field_name in const.PROGRESS_MONOTONIC_COUNTERS:
            if field_name not in delta:
                continue
            value = coerce_number(delta[field_name])
            if value is None:
                const.LOGGER.debug(
                    "DEBUG: Ignoring non-numeric %s reading: %s",
                    field_name,
                    delta[field_name],
                )
                continue
            merged[field_name] = max(  # type: ignore[literal-required]
                int(merged[field_name]),  # type: ignore[literal-required]
                int(value),
            )

        if const.PROGRESS_ACCURACY_PERCENT in delta:
            accuracy = coerce_number(delta[const.PROGRESS_ACCURACY_PERCENT])
            if accuracy is not None:
                merged[const.PROGRESS_ACCURACY_PERCENT] = clamp(accuracy, 0.0, 100.0)

        categories = delta.get(const.PROGRESS_CATEGORIES_COMPLETED)
        if isinstance(categories, list | tuple | set | frozenset):
            merged[const.PROGRESS_CATEGORIES_COMPLETED] = sorted(
                set(merged[const.PROGRESS_CATEGORIES_COMPLETED])
                | {str(category) for category in categories}
            )

        if const.PROGRESS_BEST_COMPLETION_SECONDS in delta:
            seconds = coerce_number(delta[const.PROGRESS_BEST_COMPLETION_SECONDS])
            if seconds is not None and seconds > 0:
                previous = merged[const.PROGRESS_BEST_COMPLETION_SECONDS]
                merged[const.PROGRESS_BEST_COMPLETION_SECONDS] = (
                    seconds if previous is None else min(previous, seconds)
                )

        merged[const.PROGRESS_LAST_UPDATED] = now_iso or _now_iso()
        return merged

    # =========================================================================
    # STATE OPERATIONS
    # =========================================================================

    @staticmethod
    def new_state(definition_id: str) -> UnlockState:
        """Return a fresh locked state for a definition."""
        return {
            const.STATE_DEFINITION_ID: definition_id,
            const.STATE_CURRENT_PROGRESS: 0,
            const.STATE_UNLOCKED: False,
            const.STATE_DATE_UNLOCKED: None,
            const.STATE_CLAIMED: False,
        }  # type: ignore[return-value]

    @staticmethod
    def normalize_states(
        definitions: Iterable[Definition],
        states: Mapping[str, Any] | None,
    ) -> UnlockStates:
        """Return a state for every definition, copying valid stored entries.

        States for ids no longer in the catalog are kept untouched so a
        catalog rollback never loses history.
        """
        normalized: UnlockStates = {}
        stored = states if isinstance(states, Mapping) else {}

        for definition_id, raw in stored.items():
            if isinstance(raw, Mapping):
                normalized[definition_id] = copy.deepcopy(dict(raw))  # type: ignore[assignment]

        for definition in definitions:
            raw = normalized.get(definition.id)
            if raw is None or not isinstance(raw.get(const.STATE_UNLOCKED), bool):
                if raw is not None:
                    const.LOGGER.debug(
                        "DEBUG: Rebuilding malformed state for '%s'", definition.id
                    )
                normalized[definition.id] = ProgressEngine.new_state(definition.id)
                continue
            raw[const.STATE_DEFINITION_ID] = definition.id
            if coerce_number(raw.get(const.STATE_CURRENT_PROGRESS)) is None:
                raw[const.STATE_CURRENT_PROGRESS] = 0
            raw.setdefault(const.STATE_DATE_UNLOCKED, None)
            raw.setdefault(const.STATE_CLAIMED, False)

        return normalized

    @staticmethod
    def apply_unlock(state: UnlockState, unlocked_at: str) -> bool:
        """Flip a state to unlocked in place.

        Returns:
            True if the state transitioned, False if it was already unlocked.
        """
        if state.get(const.STATE_UNLOCKED):
            return False
        state[const.STATE_UNLOCKED] = True
        state[const.STATE_DATE_UNLOCKED] = unlocked_at
        return True

    # =========================================================================
    # EVALUATION
    # =========================================================================

    @classmethod
    def resolve_progress(
        cls, requirement: Requirement, snapshot: ProgressSnapshot
    ) -> float | None:
        """Return the snapshot value a requirement is compared against.

        Returns:
            The comparable value; None when there is no reading yet
            (e.g. no timed session for speed requirements). Unknown
            requirement types resolve to 0.
        """
        cls._register_resolvers()
        resolver = cls._RESOLVERS.get(requirement.type)
        if resolver is None:
            const.LOGGER.debug(
                "DEBUG: Unknown requirement type '%s', progress defaults to 0",
                requirement.type,
            )
            return 0.0
        return resolver(snapshot)

    @classmethod
    def is_requirement_met(
        cls, requirement: Requirement, value: float | None
    ) -> bool:
        """Apply the requirement comparator to a resolved value."""
        cls._register_resolvers()
        if value is None or requirement.type not in cls._RESOLVERS:
            return False
        if requirement.comparator == const.COMPARATOR_LTE:
            return value <= requirement.threshold
        if requirement.comparator == const.COMPARATOR_GTE:
            return value >= requirement.threshold
        const.LOGGER.debug(
            "DEBUG: Unknown comparator '%s' on requirement '%s'",
            requirement.comparator,
            requirement.type,
        )
        return False

    @classmethod
    def evaluate(
        cls,
        definitions: Iterable[Definition],
        states: Mapping[str, Any] | None,
        snapshot: ProgressSnapshot,
        now_iso: str | None = None,
    ) -> EvaluationBatch:
        """Evaluate every locked definition against a snapshot.

        For every definition not yet unlocked, current_progress is updated
        unconditionally; when the comparator holds the state is unlocked
        with date_unlocked=now and its id is appended to unlocked_now.
        Already-unlocked states are never touched, which makes repeated
        calls with the same or a larger snapshot emit nothing new.

        Args:
            definitions: Catalog definitions in declaration order
            states: Stored unlock states keyed by definition id
            snapshot: Current progress snapshot
            now_iso: Unlock timestamp (defaults to now)

        Returns:
            EvaluationBatch with unlocked_now (declaration order) and a new
            states mapping. Inputs are not mutated.
        """
        cls._register_resolvers()
        ordered = tuple(definitions)
        updated = cls.normalize_states(ordered, states)
        unlocked_now: list[str] = []
        timestamp = now_iso or _now_iso()

        for definition in ordered:
            state = updated[definition.id]
            if state[const.STATE_UNLOCKED]:
                continue

            value = cls.resolve_progress(definition.requirement, snapshot)
            if value is not None:
                state[const.STATE_CURRENT_PROGRESS] = value

            if cls.is_requirement_met(definition.requirement, value):
                cls.apply_unlock(state, timestamp)
                unlocked_now.append(definition.id)

        return {"unlocked_now": unlocked_now, "states": updated}

    # =========================================================================
    # PROGRESS VIEWS
    # =========================================================================

    @staticmethod
    def progress_percent(requirement: Requirement, state: Mapping[str, Any]) -> float:
        """Return how close a state is to its requirement (0-100)."""
        if state.get(const.STATE_UNLOCKED):
            return 100.0
        progress = coerce_number(state.get(const.STATE_CURRENT_PROGRESS)) or 0.0
        if requirement.comparator == const.COMPARATOR_LTE:
            if progress <= 0:
                return 0.0
            return clamp(
                calculate_percentage(requirement.threshold, progress), 0.0, 100.0
            )
        return clamp(calculate_percentage(progress, requirement.threshold), 0.0, 100.0)

    @staticmethod
    def total_points(
        definitions: Iterable[AchievementDefinition],
        states: Mapping[str, Any],
    ) -> int:
        """Sum reward values of unlocked achievements.

        Derived from the unlocked set on every call, so re-applying an
        unlock can never award twice.
        """
        return sum(
            definition.reward.value
            for definition in definitions
            if states.get(definition.id, {}).get(const.STATE_UNLOCKED)
        )

    @staticmethod
    def badge_collection(
        definitions: Iterable[BadgeDefinition],
        states: Mapping[str, Any],
    ) -> BadgeCollection:
        """Summarize earned badges.

        prestige_level grows by one for every BADGE_PRESTIGE_DIVISOR badges
        of rare rarity or better.
        """
        ordered = tuple(definitions)
        earned = [
            definition
            for definition in ordered
            if states.get(definition.id, {}).get(const.STATE_UNLOCKED)
        ]

        by_category: dict[str, int] = {}
        by_tier: dict[str, int] = dict.fromkeys(const.TIER_ORDER, 0)
        by_rarity: dict[str, int] = dict.fromkeys(const.RARITY_ORDER, 0)
        for definition in earned:
            by_category[definition.category] = by_category.get(definition.category, 0) + 1
            by_tier[definition.tier] = by_tier.get(definition.tier, 0) + 1
            by_rarity[definition.rarity] = by_rarity.get(definition.rarity, 0) + 1

        rare_or_better = sum(
            count
            for rarity, count in by_rarity.items()
            if rarity != const.RARITY_COMMON
        )
        total_coins = sum(definition.rewards.coins for definition in earned)
        total_xp = sum(definition.rewards.xp for definition in earned)

        return {
            "total_badges": len(ordered),
            "earned_badges": len(earned),
            "completion_percent": calculate_percentage(len(earned), len(ordered)),
            "by_category": by_category,
            "by_tier": by_tier,
            "by_rarity": by_rarity,
            "total_coins": total_coins,
            "total_xp": total_xp,
            "total_value": total_coins + total_xp,
            "prestige_level": rare_or_better // const.BADGE_PRESTIGE_DIVISOR + 1,
        }

    @classmethod
    def next_achievable(
        cls,
        definitions: Iterable[Definition],
        states: Mapping[str, Any],
        limit: int = const.DEFAULT_NEXT_ACHIEVABLE_LIMIT,
    ) -> list[tuple[Definition, float]]:
        """Return locked definitions closest to unlocking.

        Sorted by progress percent descending; ties keep declaration order.
        """
        candidates = [
            (definition, cls.progress_percent(definition.requirement, state))
            for definition in definitions
            if not (state := states.get(definition.id, {})).get(const.STATE_UNLOCKED)
        ]
        candidates.sort(key=lambda item: item[1], reverse=True)
        return candidates[: max(limit, 0)]

