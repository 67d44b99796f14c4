"""Engine-owned publish/subscribe bus for WordQuest.

Each coordinator owns one bus, so several isolated engine instances can run
side by side (tests, multiple config entries) without sharing process state.
The integration layer attaches a forwarder that re-fires every event on the
Home Assistant event bus as ``wordquest_<event_type>`` for automations and
the frontend card.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

# Handler signature: (event_type, payload) -> None
EventHandler = Callable[[str, dict[str, Any]], None]


class WordQuestEventBus:
    """Synchronous observer list with explicit unsubscribe handles.

    Handlers run in subscription order on the event loop. A failing handler
    is logged and does not prevent delivery to the remaining handlers.
    """

    def __init__(self) -> None:
        """Initialize an empty bus."""
        self._handlers: list[tuple[EventHandler, frozenset[str] | None]] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_types: set[str] | frozenset[str] | None = None,
    ) -> Callable[[], None]:
        """Register a handler.

        Args:
            handler: Called with (event_type, payload) for each published event
            event_types: Optional filter; None delivers every event

        Returns:
            Callable that removes this subscription (safe to call twice).
        """
        entry = (handler, frozenset(event_types) if event_types else None)
        self._handlers.append(entry)

        def _unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return _unsubscribe

    def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Deliver an event to every matching handler."""
        const.LOGGER.debug(
            "Publishing event '%s' with payload keys: %s",
            event_type,
            list(payload.keys()),
        )
        for handler, event_types in list(self._handlers):
            if event_types is not None and event_type not in event_types:
                continue
            try:
                handler(event_type, payload)
            except Exception:  # pylint: disable=broad-exception-caught
                const.LOGGER.exception(
                    "ERROR: Event handler %s failed for '%s'", handler, event_type
                )

    @property
    def subscriber_count(self) -> int:
        """Number of active subscriptions."""
        return len(self._handlers)


def async_forward_to_hass(
    hass: HomeAssistant, event_bus: WordQuestEventBus, entry_id: str
) -> Callable[[], None]:
    """Re-fire every engine event on the Home Assistant bus.

    Events are fired as ``<domain>_<event_type>`` with the config entry id
    added to the payload.

    Returns:
        Unsubscribe callable, meant for config_entry.async_on_unload.
    """

    def _forward(event_type: str, payload: dict[str, Any]) -> None:
        hass.bus.async_fire(
            f"{const.DOMAIN}_{event_type}",
            {**payload, const.EVENT_DATA_ENTRY_ID: entry_id},
        )

    return event_bus.subscribe(_forward)
