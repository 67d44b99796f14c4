"""Achievement and badge definition catalog for WordQuest.

Definitions are immutable and fixed at import time. Declaration order is
significant: the progress engine evaluates and reports unlocks in this order,
which in turn fixes the order celebrations are queued in.

Achievements (milestones) are the jungle-adventure goals shown on the
progress screen. Badges are collectible rewards with coins and xp.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any

from . import const

# =============================================================================
# Definition Types
# =============================================================================


@dataclass(frozen=True)
class Requirement:
    """Unlock condition: snapshot field compared against a threshold."""

    type: str
    threshold: int
    comparator: str = const.COMPARATOR_GTE


@dataclass(frozen=True)
class AchievementReward:
    """Reward granted with an achievement."""

    type: str
    item: str
    value: int
    rarity: str = const.RARITY_COMMON


@dataclass(frozen=True)
class BadgeRewards:
    """Currency granted with a badge."""

    coins: int
    xp: int
    special: str | None = None


@dataclass(frozen=True)
class JungleTheme:
    """Presentation metadata forwarded to the popup renderer."""

    environment: str
    animal: str
    celebration: str


@dataclass(frozen=True)
class AchievementDefinition:
    """Immutable achievement (milestone) definition."""

    id: str
    name: str
    description: str
    icon: str
    category: str
    difficulty: str
    requirement: Requirement
    reward: AchievementReward
    theme: JungleTheme | None = None

    kind = const.KIND_ACHIEVEMENT

    def as_payload(self) -> dict[str, Any]:
        """Return a JSON-serializable copy for events and read APIs."""
        payload = asdict(self)
        payload[const.EVENT_DATA_KIND] = self.kind
        return payload

    @property
    def points(self) -> int:
        """Points this achievement contributes to the total score."""
        return self.reward.value


@dataclass(frozen=True)
class BadgeDefinition:
    """Immutable badge definition."""

    id: str
    name: str
    description: str
    icon: str
    category: str
    tier: str
    rarity: str
    requirement: Requirement
    rewards: BadgeRewards
    theme: JungleTheme | None = None

    kind = const.KIND_BADGE

    def as_payload(self) -> dict[str, Any]:
        """Return a JSON-serializable copy for events and read APIs."""
        payload = asdict(self)
        payload[const.EVENT_DATA_KIND] = self.kind
        return payload


Definition = AchievementDefinition | BadgeDefinition


# =============================================================================
# Default Catalog
# =============================================================================

_FOREST = JungleTheme("forest_floor", "monkey", "banana_burst")
_CANOPY = JungleTheme("canopy", "parrot", "feather_swirl")
_RIVER = JungleTheme("river", "crocodile", "splash")
_TEMPLE = JungleTheme("ancient_temple", "tiger", "golden_glow")

DEFAULT_ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        id="first_steps_1",
        name="First Steps in the Jungle",
        description="Learn your very first word",
        icon="🌱",
        category=const.CATEGORY_LEARNING,
        difficulty=const.DIFFICULTY_EASY,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 1),
        reward=AchievementReward(const.REWARD_TYPE_STICKER, "Baby Monkey", 10),
        theme=_FOREST,
    ),
    AchievementDefinition(
        id="word_explorer_10",
        name="Word Explorer",
        description="Learn 10 words",
        icon="🧭",
        category=const.CATEGORY_LEARNING,
        difficulty=const.DIFFICULTY_EASY,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 10),
        reward=AchievementReward(const.REWARD_TYPE_STICKER, "Explorer Hat", 25),
        theme=_FOREST,
    ),
    AchievementDefinition(
        id="word_collector_25",
        name="Word Collector",
        description="Learn 25 words",
        icon="🎒",
        category=const.CATEGORY_LEARNING,
        difficulty=const.DIFFICULTY_MEDIUM,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 25),
        reward=AchievementReward(
            const.REWARD_TYPE_ACCESSORY, "Jungle Backpack", 50, const.RARITY_RARE
        ),
        theme=_CANOPY,
    ),
    AchievementDefinition(
        id="jungle_scholar_50",
        name="Jungle Scholar",
        description="Learn 50 words",
        icon="📚",
        category=const.CATEGORY_LEARNING,
        difficulty=const.DIFFICULTY_MEDIUM,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 50),
        reward=AchievementReward(
            const.REWARD_TYPE_TITLE, "Scholar", 100, const.RARITY_RARE
        ),
        theme=_CANOPY,
    ),
    AchievementDefinition(
        id="word_master_100",
        name="Word Master",
        description="Learn 100 words",
        icon="👑",
        category=const.CATEGORY_MASTERY,
        difficulty=const.DIFFICULTY_HARD,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 100),
        reward=AchievementReward(
            const.REWARD_TYPE_TITLE, "Word Master", 200, const.RARITY_EPIC
        ),
        theme=_TEMPLE,
    ),
    AchievementDefinition(
        id="vocabulary_champion_250",
        name="Vocabulary Champion",
        description="Learn 250 words",
        icon="🏆",
        category=const.CATEGORY_MASTERY,
        difficulty=const.DIFFICULTY_HARD,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 250),
        reward=AchievementReward(
            const.REWARD_TYPE_BADGE, "Champion Crown", 400, const.RARITY_EPIC
        ),
        theme=_TEMPLE,
    ),
    AchievementDefinition(
        id="jungle_legend_500",
        name="Jungle Legend",
        description="Learn 500 words",
        icon="🐯",
        category=const.CATEGORY_MASTERY,
        difficulty=const.DIFFICULTY_LEGENDARY,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 500),
        reward=AchievementReward(
            const.REWARD_TYPE_TITLE, "Jungle Legend", 1000, const.RARITY_LEGENDARY
        ),
        theme=_TEMPLE,
    ),
    AchievementDefinition(
        id="daily_adventurer_3",
        name="Daily Adventurer",
        description="Learn for 3 days in a row",
        icon="🔥",
        category=const.CATEGORY_STREAK,
        difficulty=const.DIFFICULTY_EASY,
        requirement=Requirement(const.REQUIREMENT_STREAK_DAYS, 3),
        reward=AchievementReward(const.REWARD_TYPE_STICKER, "Campfire", 30),
        theme=_FOREST,
    ),
    AchievementDefinition(
        id="weekly_explorer_7",
        name="Weekly Explorer",
        description="Learn for 7 days in a row",
        icon="🗓️",
        category=const.CATEGORY_STREAK,
        difficulty=const.DIFFICULTY_MEDIUM,
        requirement=Requirement(const.REQUIREMENT_STREAK_DAYS, 7),
        reward=AchievementReward(
            const.REWARD_TYPE_ACCESSORY, "Explorer Compass", 75, const.RARITY_RARE
        ),
        theme=_RIVER,
    ),
    AchievementDefinition(
        id="quiz_champion_5",
        name="Quiz Champion",
        description="Score 5 in a single quiz",
        icon="🎯",
        category=const.CATEGORY_QUIZ,
        difficulty=const.DIFFICULTY_MEDIUM,
        requirement=Requirement(const.REQUIREMENT_QUIZ_SCORE, 5),
        reward=AchievementReward(const.REWARD_TYPE_STICKER, "Golden Target", 50),
        theme=_RIVER,
    ),
    AchievementDefinition(
        id="category_explorer_3",
        name="Category Explorer",
        description="Complete 3 word categories",
        icon="🗺️",
        category=const.CATEGORY_EXPLORATION,
        difficulty=const.DIFFICULTY_EASY,
        requirement=Requirement(const.REQUIREMENT_CATEGORIES_COMPLETED, 3),
        reward=AchievementReward(const.REWARD_TYPE_STICKER, "Treasure Map", 40),
        theme=_CANOPY,
    ),
    AchievementDefinition(
        id="category_master_5",
        name="Category Master",
        description="Complete 5 word categories",
        icon="🌍",
        category=const.CATEGORY_EXPLORATION,
        difficulty=const.DIFFICULTY_HARD,
        requirement=Requirement(const.REQUIREMENT_CATEGORIES_COMPLETED, 5),
        reward=AchievementReward(
            const.REWARD_TYPE_TITLE, "Globe Trotter", 120, const.RARITY_EPIC
        ),
        theme=_TEMPLE,
    ),
    AchievementDefinition(
        id="accuracy_master_90",
        name="Sharp Eye",
        description="Reach 90% overall accuracy",
        icon="🦅",
        category=const.CATEGORY_MASTERY,
        difficulty=const.DIFFICULTY_HARD,
        requirement=Requirement(const.REQUIREMENT_OVERALL_ACCURACY, 90),
        reward=AchievementReward(
            const.REWARD_TYPE_ACCESSORY, "Eagle Goggles", 150, const.RARITY_EPIC
        ),
        theme=_CANOPY,
    ),
    AchievementDefinition(
        id="session_regular_10",
        name="Jungle Regular",
        description="Complete 10 learning sessions",
        icon="⛺",
        category=const.CATEGORY_DEDICATION,
        difficulty=const.DIFFICULTY_MEDIUM,
        requirement=Requirement(const.REQUIREMENT_SESSION_COUNT, 10),
        reward=AchievementReward(const.REWARD_TYPE_STICKER, "Cozy Tent", 60),
        theme=_RIVER,
    ),
)

DEFAULT_BADGES: tuple[BadgeDefinition, ...] = (
    BadgeDefinition(
        id="first_word",
        name="First Word",
        description="Learned your first word",
        icon="🐣",
        category=const.CATEGORY_LEARNING,
        tier=const.TIER_BRONZE,
        rarity=const.RARITY_COMMON,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 1),
        rewards=BadgeRewards(coins=10, xp=25),
    ),
    BadgeDefinition(
        id="word_explorer",
        name="Word Explorer",
        description="Learned 10 words",
        icon="🔍",
        category=const.CATEGORY_LEARNING,
        tier=const.TIER_BRONZE,
        rarity=const.RARITY_COMMON,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 10),
        rewards=BadgeRewards(coins=25, xp=50),
    ),
    BadgeDefinition(
        id="vocabulary_builder",
        name="Vocabulary Builder",
        description="Learned 25 words",
        icon="🧱",
        category=const.CATEGORY_LEARNING,
        tier=const.TIER_SILVER,
        rarity=const.RARITY_RARE,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 25),
        rewards=BadgeRewards(coins=50, xp=100),
    ),
    BadgeDefinition(
        id="accuracy_expert",
        name="Accuracy Expert",
        description="Reached 80% overall accuracy",
        icon="🎯",
        category=const.CATEGORY_MASTERY,
        tier=const.TIER_SILVER,
        rarity=const.RARITY_RARE,
        requirement=Requirement(const.REQUIREMENT_OVERALL_ACCURACY, 80),
        rewards=BadgeRewards(coins=40, xp=80),
    ),
    BadgeDefinition(
        id="streak_starter",
        name="Streak Starter",
        description="Learned 3 days in a row",
        icon="🔥",
        category=const.CATEGORY_STREAK,
        tier=const.TIER_BRONZE,
        rarity=const.RARITY_COMMON,
        requirement=Requirement(const.REQUIREMENT_STREAK_DAYS, 3),
        rewards=BadgeRewards(coins=20, xp=40),
    ),
    BadgeDefinition(
        id="weekly_champion_7",
        name="Weekly Champion",
        description="Learned 7 days in a row",
        icon="📅",
        category=const.CATEGORY_STREAK,
        tier=const.TIER_GOLD,
        rarity=const.RARITY_EPIC,
        requirement=Requirement(const.REQUIREMENT_STREAK_DAYS, 7),
        rewards=BadgeRewards(coins=100, xp=200, special="Streak Flame"),
        theme=_RIVER,
    ),
    BadgeDefinition(
        id="speed_runner_bronze",
        name="Speed Runner",
        description="Finished a session in 30 seconds or less",
        icon="⚡",
        category=const.CATEGORY_SPEED,
        tier=const.TIER_BRONZE,
        rarity=const.RARITY_RARE,
        requirement=Requirement(
            const.REQUIREMENT_SPEED_COMPLETION, 30, const.COMPARATOR_LTE
        ),
        rewards=BadgeRewards(coins=30, xp=60),
    ),
    BadgeDefinition(
        id="category_explorer_5",
        name="Category Explorer",
        description="Completed 5 word categories",
        icon="🧭",
        category=const.CATEGORY_EXPLORATION,
        tier=const.TIER_GOLD,
        rarity=const.RARITY_EPIC,
        requirement=Requirement(const.REQUIREMENT_CATEGORIES_COMPLETED, 5),
        rewards=BadgeRewards(coins=75, xp=150),
        theme=_CANOPY,
    ),
    BadgeDefinition(
        id="session_regular_10",
        name="Dedicated Learner",
        description="Completed 10 learning sessions",
        icon="🏕️",
        category=const.CATEGORY_DEDICATION,
        tier=const.TIER_SILVER,
        rarity=const.RARITY_COMMON,
        requirement=Requirement(const.REQUIREMENT_SESSION_COUNT, 10),
        rewards=BadgeRewards(coins=40, xp=80),
    ),
    BadgeDefinition(
        id="word_guardian_100",
        name="Word Guardian",
        description="Learned 100 words",
        icon="🛡️",
        category=const.CATEGORY_MASTERY,
        tier=const.TIER_PLATINUM,
        rarity=const.RARITY_LEGENDARY,
        requirement=Requirement(const.REQUIREMENT_WORDS_LEARNED, 100),
        rewards=BadgeRewards(coins=200, xp=500, special="Guardian Shield"),
        theme=_TEMPLE,
    ),
)


# =============================================================================
# Catalog
# =============================================================================


class DefinitionCatalog:
    """Immutable lookup over achievement and badge definitions.

    Ids must be unique within each kind; the same id may appear once as an
    achievement and once as a badge because states are stored per kind.
    """

    def __init__(
        self,
        achievements: Iterable[AchievementDefinition] = DEFAULT_ACHIEVEMENTS,
        badges: Iterable[BadgeDefinition] = DEFAULT_BADGES,
    ) -> None:
        """Build the catalog and validate id uniqueness.

        Raises:
            ValueError: If an id is declared twice within one kind.
        """
        self._achievements: tuple[AchievementDefinition, ...] = tuple(achievements)
        self._badges: tuple[BadgeDefinition, ...] = tuple(badges)
        self._achievement_index = self._index(self._achievements)
        self._badge_index = self._index(self._badges)

    @staticmethod
    def _index(definitions: tuple[Definition, ...]) -> dict[str, Definition]:
        index: dict[str, Definition] = {}
        for definition in definitions:
            if definition.id in index:
                raise ValueError(
                    f"Duplicate {definition.kind} id in catalog: {definition.id}"
                )
            index[definition.id] = definition
        return index

    @property
    def achievements(self) -> tuple[AchievementDefinition, ...]:
        """Achievements in declaration order."""
        return self._achievements

    @property
    def badges(self) -> tuple[BadgeDefinition, ...]:
        """Badges in declaration order."""
        return self._badges

    def definitions(self, kind: str) -> tuple[Definition, ...]:
        """Return all definitions of one kind in declaration order."""
        if kind == const.KIND_ACHIEVEMENT:
            return self._achievements
        if kind == const.KIND_BADGE:
            return self._badges
        raise ValueError(f"Unknown definition kind: {kind}")

    def get_achievement(self, definition_id: str) -> AchievementDefinition | None:
        """Look up an achievement by id."""
        definition = self._achievement_index.get(definition_id)
        return definition if isinstance(definition, AchievementDefinition) else None

    def get_badge(self, definition_id: str) -> BadgeDefinition | None:
        """Look up a badge by id."""
        definition = self._badge_index.get(definition_id)
        return definition if isinstance(definition, BadgeDefinition) else None

    def get_definition(self, kind: str, definition_id: str) -> Definition | None:
        """Look up a definition of either kind."""
        if kind == const.KIND_ACHIEVEMENT:
            return self.get_achievement(definition_id)
        if kind == const.KIND_BADGE:
            return self.get_badge(definition_id)
        return None

    def by_category(self, kind: str) -> dict[str, list[Definition]]:
        """Group definitions of one kind by category, preserving order."""
        grouped: dict[str, list[Definition]] = {}
        for definition in self.definitions(kind):
            grouped.setdefault(definition.category, []).append(definition)
        return grouped


DEFAULT_CATALOG = DefinitionCatalog()
