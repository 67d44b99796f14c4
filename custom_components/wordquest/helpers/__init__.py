"""Store-bound helper functions for WordQuest.

Submodules:
    - backup_helpers: Legacy backup create/discover/restore/cleanup

Usage:
    from .helpers import backup_helpers as bh
"""

from . import backup_helpers

__all__ = ["backup_helpers"]
