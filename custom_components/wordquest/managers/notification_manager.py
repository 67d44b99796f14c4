"""Notification Manager for WordQuest integration.

Unlock celebrations are shown one at a time. This module holds:

- NotificationQueue: the single-consumer drain loop. It dequeues the head
  entry, hands it to the display callback, then waits for the popup to be
  acknowledged or for the display timeout, whichever comes first. A short
  settle delay separates consecutive popups.
- NotificationManager: wires the queue to the engine event bus. It enqueues
  unlocks recorded in Notify mode and publishes ``milestone_unlocked`` /
  ``badge_unlocked`` as each entry is displayed.

Guarantees:
- At most one entry is displaying at any instant
- Display order is arrival order (FIFO)
- An entry whose definition id is already queued is dropped (dedup)
- clear() resolves any pending wait so the loop can never hang
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable, Coroutine
import inspect
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import dt_now_iso
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..catalog import DefinitionCatalog
    from ..event_bus import WordQuestEventBus
    from ..store import KeyValueStore
    from ..type_defs import (
        NotificationEntry,
        QueueAnalytics,
        QueueStatus,
    )

# Display callback: receives the entry; may be sync or return an awaitable
DisplayCallback = Callable[["NotificationEntry"], Any]

# Starts the drain coroutine as a task (HA passes async_create_background_task)
TaskFactory = Callable[[Coroutine[Any, Any, None]], "asyncio.Task[None]"]


# =============================================================================
# NOTIFICATION QUEUE
# =============================================================================


class NotificationQueue:
    """Single-consumer queue that serializes popup display.

    State is ``{queue, is_displaying}``. The drain loop suspends only while
    waiting for an acknowledgment, the display timeout, or the settle delay.
    """

    def __init__(
        self,
        display_callback: DisplayCallback | None = None,
        *,
        display_timeout: float = const.DEFAULT_DISPLAY_TIMEOUT,
        settle_delay: float = const.DEFAULT_SETTLE_DELAY,
        task_factory: TaskFactory | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            display_callback: Invoked with each entry as it starts displaying
            display_timeout: Seconds to wait for an acknowledgment
            settle_delay: Seconds between consecutive displays
            task_factory: Creates the drain task (defaults to loop.create_task)
        """
        self._display_callback = display_callback
        self.display_timeout = display_timeout
        self.settle_delay = settle_delay
        self._task_factory = task_factory

        self._queue: deque[NotificationEntry] = deque()
        self._is_displaying = False
        self._current: NotificationEntry | None = None
        self._wakeup: asyncio.Event | None = None
        self._acknowledged = False
        self._drain_task: asyncio.Task[None] | None = None

        self._total_enqueued = 0
        self._total_deduplicated = 0
        self._total_displayed = 0
        self._acknowledged_count = 0
        self._timed_out_count = 0
        self._cleared_count = 0
        self._wait_seconds_total = 0.0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def is_displaying(self) -> bool:
        """True while the drain loop owns an entry or is between entries."""
        return self._is_displaying

    @property
    def current(self) -> NotificationEntry | None:
        """Entry currently on screen, if any."""
        return self._current

    def __len__(self) -> int:
        return len(self._queue)

    def set_display_callback(self, display_callback: DisplayCallback | None) -> None:
        """Replace the display callback (None disables it)."""
        self._display_callback = display_callback

    def enqueue(self, entry: NotificationEntry) -> bool:
        """Append an entry unless its definition id is already queued.

        Starts the drain loop when nothing is displaying.

        Returns:
            True if the entry was queued, False if it was a duplicate.
        """
        definition_id = entry[const.NOTIFY_ENTRY_DEFINITION_ID]
        if any(
            queued[const.NOTIFY_ENTRY_DEFINITION_ID] == definition_id
            for queued in self._queue
        ):
            self._total_deduplicated += 1
            const.LOGGER.debug(
                "DEBUG: Notification for '%s' already queued, dropping duplicate",
                definition_id,
            )
            return False

        self._queue.append(entry)
        self._total_enqueued += 1
        const.LOGGER.debug(
            "DEBUG: Queued notification for '%s' (queue length %s)",
            definition_id,
            len(self._queue),
        )

        if not self._is_displaying:
            self._start_drain()
        return True

    def acknowledge(self, definition_id: str | None = None) -> bool:
        """Resolve the current display wait (popup closed by the user).

        Args:
            definition_id: When given, only acknowledges if it matches the
                entry on screen

        Returns:
            True if a pending display wait was resolved.
        """
        if self._current is None or self._wakeup is None or self._acknowledged:
            return False
        if (
            definition_id is not None
            and self._current[const.NOTIFY_ENTRY_DEFINITION_ID] != definition_id
        ):
            const.LOGGER.debug(
                "DEBUG: Ignoring acknowledgment for '%s', '%s' is displaying",
                definition_id,
                self._current[const.NOTIFY_ENTRY_DEFINITION_ID],
            )
            return False
        self._acknowledged = True
        self._wakeup.set()
        return True

    def clear(self) -> int:
        """Empty the queue and force-resolve any pending wait.

        The drain loop finishes on its own once it observes the empty queue.

        Returns:
            Number of queued (not yet displayed) entries dropped.
        """
        dropped = len(self._queue)
        self._queue.clear()
        self._cleared_count += dropped
        if self._wakeup is not None:
            self._wakeup.set()
        const.LOGGER.debug("DEBUG: Notification queue cleared (%s dropped)", dropped)
        return dropped

    async def async_join(self) -> None:
        """Wait until the drain loop has finished."""
        task = self._drain_task
        if task is not None and not task.done():
            await task

    async def async_shutdown(self) -> None:
        """Clear the queue and wait for the drain loop to exit."""
        self.clear()
        await self.async_join()

    def status(self) -> QueueStatus:
        """Return a read-only view of the queue."""
        return {
            const.QUEUE_STATUS_LENGTH: len(self._queue),
            const.QUEUE_STATUS_IS_DISPLAYING: self._is_displaying,
            const.QUEUE_STATUS_CURRENT: (
                self._current[const.NOTIFY_ENTRY_DEFINITION_ID]
                if self._current
                else None
            ),
            const.QUEUE_STATUS_NEXT: (
                self._queue[0][const.NOTIFY_ENTRY_DEFINITION_ID]
                if self._queue
                else None
            ),
        }  # type: ignore[return-value]

    def analytics(self) -> QueueAnalytics:
        """Return display counters since creation."""
        resolved = self._acknowledged_count + self._timed_out_count
        return {
            "total_enqueued": self._total_enqueued,
            "total_deduplicated": self._total_deduplicated,
            "total_displayed": self._total_displayed,
            "acknowledged": self._acknowledged_count,
            "timed_out": self._timed_out_count,
            "cleared": self._cleared_count,
            "average_wait_seconds": (
                round(self._wait_seconds_total / resolved, 3) if resolved else 0.0
            ),
        }

    # -------------------------------------------------------------------------
    # Drain loop
    # -------------------------------------------------------------------------

    def _start_drain(self) -> None:
        """Mark the queue as displaying and schedule the drain loop."""
        self._is_displaying = True
        coro = self._async_drain()
        if self._task_factory is not None:
            self._drain_task = self._task_factory(coro)
        else:
            self._drain_task = asyncio.get_running_loop().create_task(coro)

    async def _async_drain(self) -> None:
        """Display queued entries one at a time until the queue is empty."""
        loop = asyncio.get_running_loop()
        try:
            while self._queue:
                entry = self._queue.popleft()
                self._current = entry
                self._acknowledged = False
                self._wakeup = asyncio.Event()
                started = loop.time()

                if await self._async_display(entry):
                    self._total_displayed += 1
                    resolved = await self._async_wait(self.display_timeout)
                    if self._acknowledged:
                        self._acknowledged_count += 1
                    elif not resolved:
                        self._timed_out_count += 1
                        const.LOGGER.debug(
                            "DEBUG: Notification for '%s' not acknowledged within %ss",
                            entry[const.NOTIFY_ENTRY_DEFINITION_ID],
                            self.display_timeout,
                        )
                    if self._acknowledged or not resolved:
                        self._wait_seconds_total += loop.time() - started

                self._current = None
                self._wakeup = None

                if self._queue and self.settle_delay > 0:
                    self._wakeup = asyncio.Event()
                    await self._async_wait(self.settle_delay)
                    self._wakeup = None
        finally:
            self._is_displaying = False
            self._current = None
            self._wakeup = None

    async def _async_display(self, entry: NotificationEntry) -> bool:
        """Invoke the display callback; failures are logged, never raised."""
        if self._display_callback is None:
            return True
        try:
            result = self._display_callback(entry)
            if inspect.isawaitable(result):
                await result
        except Exception:  # pylint: disable=broad-exception-caught
            const.LOGGER.exception(
                "ERROR: Display callback failed for '%s'",
                entry[const.NOTIFY_ENTRY_DEFINITION_ID],
            )
            return False
        return True

    async def _async_wait(self, timeout: float) -> bool:
        """Wait for the wakeup event or the timeout.

        Returns:
            True if woken (acknowledged or cleared), False on timeout.
        """
        wakeup = self._wakeup
        if wakeup is None:
            return True
        try:
            await asyncio.wait_for(wakeup.wait(), timeout)
        except TimeoutError:
            return False
        return True


# =============================================================================
# NOTIFICATION MANAGER
# =============================================================================


class NotificationManager(BaseManager):
    """Turns Notify-mode unlocks into serialized popup events."""

    def __init__(
        self,
        store: KeyValueStore,
        event_bus: WordQuestEventBus,
        catalog: DefinitionCatalog,
        *,
        display_timeout: float = const.DEFAULT_DISPLAY_TIMEOUT,
        settle_delay: float = const.DEFAULT_SETTLE_DELAY,
        task_factory: TaskFactory | None = None,
    ) -> None:
        """Initialize the notification manager.

        Args:
            store: Key/value persistence adapter
            event_bus: Bus owned by the parent coordinator
            catalog: Definition catalog used to build payloads
            display_timeout: Seconds to wait for an acknowledgment
            settle_delay: Seconds between consecutive popups
            task_factory: Creates the drain task
        """
        super().__init__(store, event_bus)
        self.catalog = catalog
        self._external_display: DisplayCallback | None = None
        self.queue = NotificationQueue(
            self._async_display_entry,
            display_timeout=display_timeout,
            settle_delay=settle_delay,
            task_factory=task_factory,
        )

    async def async_setup(self) -> None:
        """Subscribe to unlock events recorded by the progress manager."""
        self.listen(const.EVENT_UNLOCK_RECORDED, self._on_unlock_recorded)

    def set_display_callback(self, display_callback: DisplayCallback | None) -> None:
        """Register the UI collaborator invoked for each displayed entry."""
        self._external_display = display_callback

    def _on_unlock_recorded(self, payload: dict[str, Any]) -> None:
        """Enqueue unlocks recorded in Notify mode; Silent unlocks are skipped."""
        if payload.get(const.EVENT_DATA_MODE) != const.UNLOCK_MODE_NOTIFY:
            return
        self.enqueue_unlock(
            payload[const.EVENT_DATA_KIND],
            payload[const.STATE_DEFINITION_ID],
            payload.get(const.EVENT_DATA_STATE) or {},
        )

    def enqueue_unlock(
        self, kind: str, definition_id: str, state: dict[str, Any]
    ) -> bool:
        """Build a queue entry for an unlocked definition and enqueue it.

        Returns:
            True if queued, False for duplicates or unknown ids.
        """
        definition = self.catalog.get_definition(kind, definition_id)
        if definition is None:
            const.LOGGER.warning(
                "WARNING: Cannot notify unknown %s '%s'", kind, definition_id
            )
            return False

        definition_payload = definition.as_payload()
        entry: NotificationEntry = {
            const.NOTIFY_ENTRY_DEFINITION_ID: definition_id,
            const.NOTIFY_ENTRY_KIND: kind,
            const.NOTIFY_ENTRY_PAYLOAD: {
                const.EVENT_DATA_DEFINITION: definition_payload,
                const.EVENT_DATA_REWARD: definition_payload.get(
                    "reward", definition_payload.get("rewards")
                ),
                const.EVENT_DATA_STATE: dict(state),
            },
            const.NOTIFY_ENTRY_ENQUEUED_AT: dt_now_iso(),
        }  # type: ignore[assignment]
        return self.queue.enqueue(entry)

    async def _async_display_entry(self, entry: NotificationEntry) -> None:
        """Publish the unlock event, then hand the entry to the UI callback."""
        event_type = (
            const.EVENT_MILESTONE_UNLOCKED
            if entry[const.NOTIFY_ENTRY_KIND] == const.KIND_ACHIEVEMENT
            else const.EVENT_BADGE_UNLOCKED
        )
        self.emit(
            event_type,
            **{
                const.EVENT_DATA_KIND: entry[const.NOTIFY_ENTRY_KIND],
                const.STATE_DEFINITION_ID: entry[const.NOTIFY_ENTRY_DEFINITION_ID],
                **entry[const.NOTIFY_ENTRY_PAYLOAD],
            },
        )
        if self._external_display is not None:
            result = self._external_display(entry)
            if inspect.isawaitable(result):
                await result

    def acknowledge(self, definition_id: str | None = None) -> bool:
        """Popup closed by the user."""
        return self.queue.acknowledge(definition_id)

    def clear(self) -> int:
        """Drop queued popups and release the current wait."""
        return self.queue.clear()

    def status(self) -> QueueStatus:
        """Queue status for diagnostics and services."""
        return self.queue.status()

    def analytics(self) -> QueueAnalytics:
        """Queue display counters."""
        return self.queue.analytics()

    async def async_shutdown(self) -> None:
        """Stop the drain loop and drop subscriptions."""
        await self.queue.async_shutdown()
        await super().async_shutdown()
