"""Tests for the notification queue and NotificationManager.

The drain loop runs as a real task, so every test ends with
``async_shutdown()`` to leave no task behind.

Test Categories:
- FIFO display with acknowledgment and the one-at-a-time guarantee
- Deduplication of queued ids
- Timeout, clear() and callback failure never hang the loop
- NotificationManager: Notify vs Silent unlocks, published popup events
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from custom_components.wordquest import const
from custom_components.wordquest.catalog import DEFAULT_CATALOG
from custom_components.wordquest.event_bus import WordQuestEventBus
from custom_components.wordquest.managers.notification_manager import (
    NotificationManager,
    NotificationQueue,
)
from custom_components.wordquest.store import WordQuestStore

LONG_TIMEOUT = 30.0
SHORT_TIMEOUT = 0.01


# =============================================================================
# HELPERS
# =============================================================================


def make_entry(definition_id: str, kind: str = const.KIND_BADGE) -> dict[str, Any]:
    """Build a bare queue entry."""
    return {
        const.NOTIFY_ENTRY_DEFINITION_ID: definition_id,
        const.NOTIFY_ENTRY_KIND: kind,
        const.NOTIFY_ENTRY_PAYLOAD: {},
        const.NOTIFY_ENTRY_ENQUEUED_AT: "2026-01-18T12:00:00+00:00",
    }


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until predicate() holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)


def showing(queue: NotificationQueue, definition_id: str) -> Callable[[], bool]:
    """Predicate: the given id is on screen."""
    return lambda: (
        queue.current is not None
        and queue.current[const.NOTIFY_ENTRY_DEFINITION_ID] == definition_id
    )


class DisplayRecorder:
    """Display callback recording displayed ids; can fail for chosen ids."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.displayed: list[str] = []
        self.fail_for = fail_for or set()

    def __call__(self, entry: dict[str, Any]) -> None:
        definition_id = entry[const.NOTIFY_ENTRY_DEFINITION_ID]
        if definition_id in self.fail_for:
            raise RuntimeError(f"cannot render {definition_id}")
        self.displayed.append(definition_id)


# =============================================================================
# QUEUE TESTS
# =============================================================================


class TestNotificationQueue:
    """Tests for NotificationQueue."""

    async def test_fifo_with_acknowledgment(self) -> None:
        """Entries display one at a time in arrival order."""
        recorder = DisplayRecorder()
        queue = NotificationQueue(
            recorder, display_timeout=LONG_TIMEOUT, settle_delay=0.0
        )

        for definition_id in ("a", "b", "c"):
            assert queue.enqueue(make_entry(definition_id))

        for definition_id in ("a", "b", "c"):
            await wait_until(showing(queue, definition_id))
            assert recorder.displayed[-1] == definition_id
            assert queue.is_displaying
            assert queue.acknowledge(definition_id)

        await queue.async_join()

        assert recorder.displayed == ["a", "b", "c"]
        assert not queue.is_displaying
        assert queue.analytics()["acknowledged"] == 3
        await queue.async_shutdown()

    async def test_enqueue_marks_displaying_immediately(self) -> None:
        """The first enqueue claims the display before the loop runs."""
        queue = NotificationQueue(display_timeout=LONG_TIMEOUT, settle_delay=0.0)

        queue.enqueue(make_entry("a"))
        queue.enqueue(make_entry("b"))

        assert queue.status() == {
            const.QUEUE_STATUS_LENGTH: 2,
            const.QUEUE_STATUS_IS_DISPLAYING: True,
            const.QUEUE_STATUS_CURRENT: None,
            const.QUEUE_STATUS_NEXT: "a",
        }
        await queue.async_shutdown()

    async def test_duplicate_queued_id_is_dropped(self) -> None:
        """A second entry for an already queued id is rejected."""
        queue = NotificationQueue(display_timeout=LONG_TIMEOUT, settle_delay=0.0)

        assert queue.enqueue(make_entry("a"))
        assert not queue.enqueue(make_entry("a"))

        assert len(queue) == 1
        assert queue.analytics()["total_deduplicated"] == 1
        await queue.async_shutdown()

    async def test_timeout_moves_on(self) -> None:
        """Unacknowledged popups are dismissed after the display timeout."""
        recorder = DisplayRecorder()
        queue = NotificationQueue(
            recorder, display_timeout=SHORT_TIMEOUT, settle_delay=0.0
        )

        queue.enqueue(make_entry("a"))
        queue.enqueue(make_entry("b"))
        await asyncio.wait_for(queue.async_join(), 2)

        assert recorder.displayed == ["a", "b"]
        assert queue.analytics()["timed_out"] == 2
        assert not queue.is_displaying
        await queue.async_shutdown()

    async def test_clear_releases_pending_wait(self) -> None:
        """clear() drops queued entries and ends the current wait."""
        recorder = DisplayRecorder()
        queue = NotificationQueue(
            recorder, display_timeout=LONG_TIMEOUT, settle_delay=0.0
        )
        queue.enqueue(make_entry("a"))
        queue.enqueue(make_entry("b"))
        await wait_until(showing(queue, "a"))

        dropped = queue.clear()
        await asyncio.wait_for(queue.async_join(), 2)

        assert dropped == 1
        assert recorder.displayed == ["a"]
        assert not queue.is_displaying
        assert len(queue) == 0
        await queue.async_shutdown()

    async def test_callback_failure_skips_entry(self) -> None:
        """A failing display callback does not stall the queue."""
        recorder = DisplayRecorder(fail_for={"broken"})
        queue = NotificationQueue(
            recorder, display_timeout=SHORT_TIMEOUT, settle_delay=0.0
        )

        queue.enqueue(make_entry("broken"))
        queue.enqueue(make_entry("fine"))
        await asyncio.wait_for(queue.async_join(), 2)

        assert recorder.displayed == ["fine"]
        assert queue.analytics()["total_displayed"] == 1
        await queue.async_shutdown()

    async def test_mismatched_acknowledgment_is_ignored(self) -> None:
        """Only the entry on screen can be acknowledged by id."""
        queue = NotificationQueue(display_timeout=LONG_TIMEOUT, settle_delay=0.0)
        queue.enqueue(make_entry("a"))
        await wait_until(showing(queue, "a"))

        assert not queue.acknowledge("b")
        assert queue.acknowledge()
        assert not queue.acknowledge()

        await asyncio.wait_for(queue.async_join(), 2)
        await queue.async_shutdown()

    async def test_acknowledge_with_nothing_displaying(self) -> None:
        """Acknowledging an idle queue is a no-op."""
        queue = NotificationQueue()

        assert not queue.acknowledge()
        assert queue.clear() == 0

    async def test_restarts_after_drain(self) -> None:
        """A new entry after the loop finished starts a new loop."""
        recorder = DisplayRecorder()
        queue = NotificationQueue(
            recorder, display_timeout=SHORT_TIMEOUT, settle_delay=0.0
        )
        queue.enqueue(make_entry("a"))
        await asyncio.wait_for(queue.async_join(), 2)
        assert not queue.is_displaying

        assert queue.enqueue(make_entry("a"))
        assert queue.is_displaying
        await asyncio.wait_for(queue.async_join(), 2)

        assert recorder.displayed == ["a", "a"]
        await queue.async_shutdown()

    async def test_settle_delay_between_entries(self) -> None:
        """Consecutive popups are separated by the settle delay."""
        stamps: list[float] = []
        loop = asyncio.get_running_loop()
        queue = NotificationQueue(
            lambda entry: stamps.append(loop.time()),
            display_timeout=SHORT_TIMEOUT,
            settle_delay=0.05,
        )

        queue.enqueue(make_entry("a"))
        queue.enqueue(make_entry("b"))
        await asyncio.wait_for(queue.async_join(), 2)

        assert len(stamps) == 2
        assert stamps[1] - stamps[0] >= 0.05
        await queue.async_shutdown()


# =============================================================================
# MANAGER TESTS
# =============================================================================


@pytest.fixture
async def notification_manager(
    store: WordQuestStore, event_bus: WordQuestEventBus
) -> NotificationManager:
    """Return a set-up notification manager with fast timings."""
    manager = NotificationManager(
        store,
        event_bus,
        DEFAULT_CATALOG,
        display_timeout=LONG_TIMEOUT,
        settle_delay=0.0,
    )
    await manager.async_setup()
    return manager


def unlock_recorded(kind: str, definition_id: str, mode: str) -> dict[str, Any]:
    """Payload the progress manager publishes for a recorded unlock."""
    return {
        const.EVENT_DATA_KIND: kind,
        const.STATE_DEFINITION_ID: definition_id,
        const.EVENT_DATA_STATE: {const.STATE_UNLOCKED: True},
        const.EVENT_DATA_MODE: mode,
    }


class TestNotificationManager:
    """Tests for NotificationManager."""

    async def test_notify_unlock_publishes_popup_event(
        self,
        notification_manager: NotificationManager,
        event_bus: WordQuestEventBus,
        recorded_events: list[tuple[str, dict[str, Any]]],
    ) -> None:
        """Notify-mode unlocks are displayed and announced in order."""
        shown: list[str] = []
        notification_manager.set_display_callback(
            lambda entry: shown.append(entry[const.NOTIFY_ENTRY_DEFINITION_ID])
        )
        queue = notification_manager.queue

        event_bus.publish(
            const.EVENT_UNLOCK_RECORDED,
            unlock_recorded(const.KIND_ACHIEVEMENT, "first_steps_1", const.UNLOCK_MODE_NOTIFY),
        )
        event_bus.publish(
            const.EVENT_UNLOCK_RECORDED,
            unlock_recorded(const.KIND_BADGE, "first_word", const.UNLOCK_MODE_NOTIFY),
        )
        await wait_until(showing(queue, "first_steps_1"))
        notification_manager.acknowledge("first_steps_1")
        await wait_until(showing(queue, "first_word"))
        notification_manager.acknowledge()
        await asyncio.wait_for(queue.async_join(), 2)

        popups = [
            (event_type, payload)
            for event_type, payload in recorded_events
            if event_type in (const.EVENT_MILESTONE_UNLOCKED, const.EVENT_BADGE_UNLOCKED)
        ]
        assert [event_type for event_type, _payload in popups] == [
            const.EVENT_MILESTONE_UNLOCKED,
            const.EVENT_BADGE_UNLOCKED,
        ]
        milestone = popups[0][1]
        assert milestone[const.STATE_DEFINITION_ID] == "first_steps_1"
        assert milestone[const.EVENT_DATA_REWARD]["value"] == 10
        assert milestone[const.EVENT_DATA_DEFINITION]["name"] == "First Steps in the Jungle"
        assert popups[1][1][const.EVENT_DATA_REWARD]["coins"] > 0
        assert shown == ["first_steps_1", "first_word"]
        await notification_manager.async_shutdown()

    async def test_silent_unlock_is_not_queued(
        self,
        notification_manager: NotificationManager,
        event_bus: WordQuestEventBus,
    ) -> None:
        """Silent unlocks never touch the queue."""
        event_bus.publish(
            const.EVENT_UNLOCK_RECORDED,
            unlock_recorded(const.KIND_BADGE, "first_word", const.UNLOCK_MODE_SILENT),
        )

        assert notification_manager.status()[const.QUEUE_STATUS_LENGTH] == 0
        assert not notification_manager.queue.is_displaying
        await notification_manager.async_shutdown()

    async def test_unknown_definition_is_not_queued(
        self, notification_manager: NotificationManager
    ) -> None:
        """Ids missing from the catalog cannot be celebrated."""
        assert not notification_manager.enqueue_unlock(
            const.KIND_BADGE, "retired_badge", {}
        )
        await notification_manager.async_shutdown()

    async def test_shutdown_unsubscribes(
        self,
        notification_manager: NotificationManager,
        event_bus: WordQuestEventBus,
    ) -> None:
        """After shutdown, recorded unlocks are no longer queued."""
        await notification_manager.async_shutdown()

        event_bus.publish(
            const.EVENT_UNLOCK_RECORDED,
            unlock_recorded(const.KIND_BADGE, "first_word", const.UNLOCK_MODE_NOTIFY),
        )

        assert len(notification_manager.queue) == 0
