"""Base manager class for WordQuest managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .. import const

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..event_bus import WordQuestEventBus
    from ..store import KeyValueStore


class BaseManager(ABC):
    """Base class for all WordQuest managers with bus-scoped event support.

    Provides:
    - Event emitting on the owning coordinator's bus (emit)
    - Event listening with tracked unsubscribe handles (listen)
    - Cleanup of every subscription via async_shutdown()

    Data Persistence:
    - Every mutation is written through the injected KeyValueStore before
      the manager emits events about it

    Subclasses must implement:
    - async_setup(): Subscribe to events, load state
    """

    def __init__(self, store: KeyValueStore, event_bus: WordQuestEventBus) -> None:
        """Initialize manager.

        Args:
            store: Key/value persistence adapter
            event_bus: Bus owned by the parent coordinator
        """
        self.store = store
        self.event_bus = event_bus
        self._unsubscribers: list[Callable[[], None]] = []

    def emit(self, event_type: str, **payload: Any) -> None:
        """Emit an event to other managers and external subscribers.

        Args:
            event_type: Event constant (e.g., const.EVENT_BADGE_UNLOCKED)
            **payload: Event data (must be JSON-serializable)

        Example:
            self.emit(
                const.EVENT_ACHIEVEMENT_CLAIMED,
                definition=definition.as_payload(),
                state=state,
            )
        """
        self.event_bus.publish(event_type, payload)

    def listen(self, event_type: str, callback: Callable[[dict[str, Any]], None]) -> None:
        """Subscribe to one event type; removed again by async_shutdown().

        Args:
            event_type: Event constant to listen for
            callback: Called with the payload dict
        """

        def _handler(_event_type: str, payload: dict[str, Any]) -> None:
            callback(payload)

        self._unsubscribers.append(
            self.event_bus.subscribe(_handler, frozenset({event_type}))
        )
        const.LOGGER.debug(
            "Manager %s listening to event '%s'",
            self.__class__.__name__,
            event_type,
        )

    @abstractmethod
    async def async_setup(self) -> None:
        """Set up the manager (subscribe to events, load state).

        Called once during coordinator initialization.
        """

    async def async_shutdown(self) -> None:
        """Remove every subscription made through listen()."""
        while self._unsubscribers:
            self._unsubscribers.pop()()
