"""Constants for the WordQuest integration.

This file centralizes storage keys, configuration keys, defaults, event names,
requirement types and the legacy migration tables used across the integration.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
# Integration Name
WORDQUEST_TITLE = "WordQuest"

# Integration Domain
DOMAIN = "wordquest"

# Logger
LOGGER = logging.getLogger(__package__)

# Supported Platforms (state is exposed via events, services and diagnostics)
PLATFORMS: list[str] = []

# hass.data keys
COORDINATOR = "coordinator"
STORE = "store"

# Storage and Versioning
STORAGE_KEY = "wordquest_data"
STORAGE_VERSION = 1
SCHEMA_VERSION = 1

# ------------------------------------------------------------------------------------------------
# Persisted Key Namespaces (one top-level key per owning component)
# ------------------------------------------------------------------------------------------------
DATA_PROGRESS = "wordquest_progress"
DATA_ACHIEVEMENTS = "wordquest_achievements"
DATA_BADGES = "wordquest_badges"
DATA_MIGRATION = "wordquest_migration"
DATA_ANALYTICS_WEEKLY = "wordquest_analytics_weekly"
DATA_LEGACY_BACKUP_PREFIX = "wordquest_legacy_backup_"

# ProgressSnapshot fields
PROGRESS_WORDS_LEARNED = "words_learned"
PROGRESS_STREAK_DAYS = "streak_days"
PROGRESS_ACCURACY_PERCENT = "accuracy_percent"
PROGRESS_CATEGORIES_COMPLETED = "categories_completed"
PROGRESS_QUIZ_SCORE = "quiz_score"
PROGRESS_SESSION_COUNT = "session_count"
PROGRESS_BEST_COMPLETION_SECONDS = "best_completion_seconds"
PROGRESS_LAST_UPDATED = "last_updated"

# Counters that never decrease (merged with max)
PROGRESS_MONOTONIC_COUNTERS = (
    PROGRESS_WORDS_LEARNED,
    PROGRESS_STREAK_DAYS,
    PROGRESS_QUIZ_SCORE,
    PROGRESS_SESSION_COUNT,
)

# Unlock state fields
STATE_DEFINITION_ID = "definition_id"
STATE_CURRENT_PROGRESS = "current_progress"
STATE_UNLOCKED = "unlocked"
STATE_DATE_UNLOCKED = "date_unlocked"
STATE_CLAIMED = "claimed"

# Definition kinds
KIND_ACHIEVEMENT = "achievement"
KIND_BADGE = "badge"

# ------------------------------------------------------------------------------------------------
# Requirement Types and Comparators
# ------------------------------------------------------------------------------------------------
REQUIREMENT_WORDS_LEARNED = "words_learned"
REQUIREMENT_STREAK_DAYS = "streak_days"
REQUIREMENT_OVERALL_ACCURACY = "overall_accuracy"
REQUIREMENT_CATEGORIES_COMPLETED = "categories_completed"
REQUIREMENT_QUIZ_SCORE = "quiz_score"
REQUIREMENT_SESSION_COUNT = "session_count"
REQUIREMENT_SPEED_COMPLETION = "speed_completion"

COMPARATOR_GTE = "gte"
COMPARATOR_LTE = "lte"

# Achievement categories
CATEGORY_LEARNING = "learning"
CATEGORY_STREAK = "streak"
CATEGORY_QUIZ = "quiz"
CATEGORY_EXPLORATION = "exploration"
CATEGORY_MASTERY = "mastery"
CATEGORY_SPEED = "speed"
CATEGORY_DEDICATION = "dedication"

# Difficulty / tiers
DIFFICULTY_EASY = "easy"
DIFFICULTY_MEDIUM = "medium"
DIFFICULTY_HARD = "hard"
DIFFICULTY_LEGENDARY = "legendary"

TIER_BRONZE = "bronze"
TIER_SILVER = "silver"
TIER_GOLD = "gold"
TIER_PLATINUM = "platinum"
TIER_DIAMOND = "diamond"
TIER_LEGENDARY = "legendary"
TIER_ORDER = (
    TIER_BRONZE,
    TIER_SILVER,
    TIER_GOLD,
    TIER_PLATINUM,
    TIER_DIAMOND,
    TIER_LEGENDARY,
)

# Rarities, ordered from most common to most rare
RARITY_COMMON = "common"
RARITY_RARE = "rare"
RARITY_EPIC = "epic"
RARITY_LEGENDARY = "legendary"
RARITY_ORDER = (RARITY_COMMON, RARITY_RARE, RARITY_EPIC, RARITY_LEGENDARY)

# Reward types
REWARD_TYPE_STICKER = "sticker"
REWARD_TYPE_BADGE = "badge"
REWARD_TYPE_TITLE = "title"
REWARD_TYPE_ACCESSORY = "accessory"

# Prestige: one level per this many rare-or-better badges
BADGE_PRESTIGE_DIVISOR = 3

# Default number of suggestions returned by next-achievable lookups
DEFAULT_NEXT_ACHIEVABLE_LIMIT = 3

# ------------------------------------------------------------------------------------------------
# Level / Experience
# ------------------------------------------------------------------------------------------------
EXPERIENCE_PER_WORD = 10
LEVEL_BASE_THRESHOLD = 100
LEVEL_THRESHOLD_GROWTH = 1.5

# (words_threshold, bonus_experience, milestone name)
WORD_MILESTONES = (
    (10, 50, "First Steps"),
    (25, 100, "Word Explorer"),
    (50, 200, "Vocabulary Builder"),
    (100, 500, "Word Master"),
)

# ------------------------------------------------------------------------------------------------
# Events (published on the engine event bus, forwarded to HA as "<domain>_<event>")
# ------------------------------------------------------------------------------------------------
EVENT_MILESTONE_UNLOCKED = "milestone_unlocked"
EVENT_BADGE_UNLOCKED = "badge_unlocked"
EVENT_ACHIEVEMENT_CLAIMED = "achievement_claimed"
EVENT_PROGRESS_UPDATED = "progress_updated"
EVENT_MIGRATION_COMPLETED = "migration_completed"
EVENT_UNLOCK_RECORDED = "unlock_recorded"

# Event payload fields
EVENT_DATA_KIND = "kind"
EVENT_DATA_DEFINITION = "definition"
EVENT_DATA_STATE = "state"
EVENT_DATA_REWARD = "reward"
EVENT_DATA_ENTRY_ID = "entry_id"
EVENT_DATA_MODE = "mode"

# Unlock modes: Notify queues a popup, Silent never touches the queue
UNLOCK_MODE_NOTIFY = "notify"
UNLOCK_MODE_SILENT = "silent"

# ------------------------------------------------------------------------------------------------
# Notification Queue
# ------------------------------------------------------------------------------------------------
NOTIFY_ENTRY_DEFINITION_ID = "definition_id"
NOTIFY_ENTRY_KIND = "kind"
NOTIFY_ENTRY_PAYLOAD = "payload"
NOTIFY_ENTRY_ENQUEUED_AT = "enqueued_at"

QUEUE_STATUS_LENGTH = "queue_length"
QUEUE_STATUS_IS_DISPLAYING = "is_displaying"
QUEUE_STATUS_CURRENT = "current"
QUEUE_STATUS_NEXT = "next"

# ------------------------------------------------------------------------------------------------
# Configuration (config entry options)
# ------------------------------------------------------------------------------------------------
CONF_DISPLAY_TIMEOUT = "display_timeout"
CONF_SETTLE_DELAY = "settle_delay"
CONF_RUN_MIGRATION_ON_START = "run_migration_on_start"
CONF_BACKUPS_MAX_RETAINED = "backups_max_retained"

DEFAULT_DISPLAY_TIMEOUT = 4.0
DEFAULT_SETTLE_DELAY = 0.5
DEFAULT_RUN_MIGRATION_ON_START = True
DEFAULT_BACKUPS_MAX_RETAINED = 3

DEFAULT_OPTIONS = {
    CONF_DISPLAY_TIMEOUT: DEFAULT_DISPLAY_TIMEOUT,
    CONF_SETTLE_DELAY: DEFAULT_SETTLE_DELAY,
    CONF_RUN_MIGRATION_ON_START: DEFAULT_RUN_MIGRATION_ON_START,
    CONF_BACKUPS_MAX_RETAINED: DEFAULT_BACKUPS_MAX_RETAINED,
}

# ------------------------------------------------------------------------------------------------
# Legacy Migration
# ------------------------------------------------------------------------------------------------
MIGRATION_VERSION = "2.0.0"

LEGACY_KEY_ACHIEVEMENTS = "achievements"
LEGACY_KEY_ACHIEVEMENT_TRACKER = "achievementTracker"
LEGACY_KEY_USER_PROGRESS = "userProgress"
LEGACY_KEY_LEARNING_PROGRESS = "learningProgress"
LEGACY_KEY_CHILD_STATS = "childStats"
# Detected and backed up, never parsed
LEGACY_KEY_USER_WORD_HISTORY = "userWordHistory"
LEGACY_KEY_LEARNING_GOALS = "learningGoals"
LEGACY_KEY_DAILY_SESSION_COUNT = "dailySessionCount"

LEGACY_KEYS = (
    LEGACY_KEY_ACHIEVEMENTS,
    LEGACY_KEY_ACHIEVEMENT_TRACKER,
    LEGACY_KEY_USER_PROGRESS,
    LEGACY_KEY_LEARNING_PROGRESS,
    LEGACY_KEY_CHILD_STATS,
    LEGACY_KEY_USER_WORD_HISTORY,
    LEGACY_KEY_LEARNING_GOALS,
    LEGACY_KEY_DAILY_SESSION_COUNT,
)

# Schema tags for legacy record detection
LEGACY_SCHEMA_V1 = "v1"
LEGACY_SCHEMA_V2 = "v2"
LEGACY_SCHEMA_UNKNOWN = "unknown"

# Legacy achievement id -> current achievement id
LEGACY_ACHIEVEMENT_ID_MAP = {
    "first-word": "first_steps_1",
    "streak-starter": "daily_adventurer_3",
    "category-explorer": "category_explorer_3",
    "science-star": "category_master_5",
    "quiz-master": "quiz_champion_5",
    "vocabulary-champion": "vocabulary_champion_250",
}

# Legacy counter badge rules: (counter field, minimum value, badge id).
# Each rule is evaluated independently.
LEGACY_BADGE_RULES = (
    (PROGRESS_WORDS_LEARNED, 1, "first_word"),
    (PROGRESS_WORDS_LEARNED, 10, "word_explorer"),
    (PROGRESS_WORDS_LEARNED, 25, "vocabulary_builder"),
    (PROGRESS_ACCURACY_PERCENT, 80, "accuracy_expert"),
    (PROGRESS_STREAK_DAYS, 3, "streak_starter"),
)

# Weekly rollup: minutes attributed to each legacy session
LEGACY_MINUTES_PER_SESSION = 15

# MigrationResult fields
MIGRATION_SUCCESS = "success"
MIGRATION_SKIPPED = "skipped"
MIGRATION_ACHIEVEMENTS = "migrated_achievements"
MIGRATION_BADGES = "migrated_badges"
MIGRATION_PROGRESS = "migrated_progress"
MIGRATION_ERRORS = "errors"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_TRACK_PROGRESS = "track_progress"
SERVICE_ACKNOWLEDGE_NOTIFICATION = "acknowledge_notification"
SERVICE_CLEAR_NOTIFICATIONS = "clear_notifications"
SERVICE_CLAIM_ACHIEVEMENT = "claim_achievement"
SERVICE_RUN_MIGRATION = "run_migration"
SERVICE_RESET_PROGRESS = "reset_progress"

FIELD_DEFINITION_ID = "definition_id"
FIELD_ACHIEVEMENT_ID = "achievement_id"
FIELD_FORCE = "force"

# ------------------------------------------------------------------------------------------------
# Translation keys / messages
# ------------------------------------------------------------------------------------------------
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_INVALID_TIMING = "invalid_timing"

MSG_NO_ENTRY_FOUND = "No WordQuest entry found"
ERROR_ACHIEVEMENT_NOT_FOUND_FMT = "Achievement '{}' not found"
ERROR_ACHIEVEMENT_NOT_CLAIMABLE_FMT = "Achievement '{}' is not unlocked or already claimed"
