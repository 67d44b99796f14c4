"""Manager modules for WordQuest integration.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and own persistence of their key namespaces.
"""

from .base_manager import BaseManager
from .notification_manager import NotificationManager, NotificationQueue
from .progress_manager import ProgressManager, UnlockMode

__all__ = [
    "BaseManager",
    "NotificationManager",
    "NotificationQueue",
    "ProgressManager",
    "UnlockMode",
]
