"""
PanelEventChannel: multi-producer, single-consumer event queue.

Script threads publish; the presentation loop drains without blocking.
Events from one producer are delivered in publish order.

The channel is bounded. When it is full the overflow policy decides:
- DROP_OLDEST: discard the oldest queued event to make room. Never blocks
  a producer. A dropped PanelCreated turns later appends for that id
  into no-ops downstream.
- BLOCK: the producer waits up to block_timeout seconds for the consumer
  to make room; if none appears the new event is discarded.
Every discarded event is counted in `dropped`.
"""

import logging
import threading
from collections import deque

from uart_debug.config import OverflowPolicy
from uart_debug.panels.events import PanelEvent

logger = logging.getLogger(__name__)


class PanelEventChannel:
    """
    Bounded, thread-safe FIFO of panel events.

    Example:
        channel = PanelEventChannel(capacity=100)
        channel.publish(PanelCreated(0, "log"))
        channel.drain()  # [PanelCreated(panel_id=0, name="log")]
    """

    def __init__(
        self,
        capacity: int = 10_000,
        overflow: OverflowPolicy = OverflowPolicy.DROP_OLDEST,
        block_timeout: float = 1.0,
    ) -> None:
        """
        Initialize channel.

        Args:
            capacity: Maximum queued events
            overflow: Policy applied when a publish finds the channel full
            block_timeout: Seconds a BLOCK producer waits before discarding
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._queue: deque[PanelEvent] = deque()
        self._capacity = capacity
        self._overflow = overflow
        self._block_timeout = block_timeout
        self._cond = threading.Condition()
        self._dropped = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def dropped(self) -> int:
        """Number of events discarded by the overflow policy."""
        with self._cond:
            return self._dropped

    def publish(self, event: PanelEvent) -> bool:
        """
        Enqueue an event.

        Args:
            event: Event to deliver to the consumer

        Returns:
            True if the event was queued, False if it was discarded
        """
        with self._cond:
            if len(self._queue) >= self._capacity:
                if self._overflow is OverflowPolicy.DROP_OLDEST:
                    discarded = self._queue.popleft()
                    self._dropped += 1
                    logger.debug("Channel full, dropped oldest event %r", discarded)
                else:
                    has_room = self._cond.wait_for(
                        lambda: len(self._queue) < self._capacity,
                        timeout=self._block_timeout,
                    )
                    if not has_room:
                        self._dropped += 1
                        logger.debug("Channel full, dropped new event %r", event)
                        return False
            self._queue.append(event)
            return True

    def drain(self, max_events: int | None = None) -> list[PanelEvent]:
        """
        Remove and return queued events without waiting.

        Args:
            max_events: Upper bound on events returned, or None for all

        Returns:
            Events in arrival order (possibly empty)
        """
        with self._cond:
            if max_events is None or max_events >= len(self._queue):
                events = list(self._queue)
                self._queue.clear()
            else:
                events = [self._queue.popleft() for _ in range(max_events)]
            if events:
                self._cond.notify_all()
        return events

    def __len__(self) -> int:
        """Return number of queued events."""
        with self._cond:
            return len(self._queue)
