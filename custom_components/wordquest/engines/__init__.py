"""Engine modules for WordQuest integration.

Contains pure computation engines (no Home Assistant imports):
- progress_engine: Snapshot merging and achievement/badge unlock evaluation
- level_engine: Experience and level progression
- legacy_engine: Legacy record parsing and badge rules
- statistics_engine: Weekly analytics rollups
"""

# Use relative imports within package to avoid mypy module resolution issues
from .legacy_engine import LegacyEngine, LegacyRecordError
from .level_engine import LevelEngine
from .progress_engine import ProgressEngine
from .statistics_engine import StatisticsEngine

__all__ = [
    "LegacyEngine",
    "LegacyRecordError",
    "LevelEngine",
    "ProgressEngine",
    "StatisticsEngine",
]
