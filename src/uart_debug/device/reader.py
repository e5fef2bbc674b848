"""
ReaderLoop: background thread draining a DeviceLink into a ReceiveBuffer.

One ReaderLoop exists per connection. It alternates between two states:

- polling: read whatever bytes have arrived; non-empty reads are appended
  to the ReceiveBuffer as one contiguous run
- idle-backoff: after an empty read, wait a short fixed interval with the
  link lock released, then poll again

A LinkIOError ends the loop in the failed state. The error is recorded
and reported through the on_lost callback instead of disappearing.
stop() sets a cancellation event that is checked every iteration and
also interrupts the backoff wait.
"""

import logging
import threading
from enum import Enum
from typing import Callable

from uart_debug.device.buffer import ReceiveBuffer
from uart_debug.device.link import DeviceLink
from uart_debug.exceptions import LinkIOError

logger = logging.getLogger(__name__)


class ReaderState(Enum):
    """Lifecycle state of a ReaderLoop."""

    CREATED = "created"
    POLLING = "polling"
    IDLE_BACKOFF = "idle_backoff"
    STOPPED = "stopped"
    FAILED = "failed"


class ReaderLoop:
    """
    Long-lived reader thread for one connection.

    Example:
        reader = ReaderLoop(link, buffer, on_lost=lambda e: print(e.reason))
        reader.start()
        # ... later ...
        reader.stop()
        reader.join()
    """

    def __init__(
        self,
        link: DeviceLink,
        buffer: ReceiveBuffer,
        backoff: float = 0.01,
        chunk_size: int = 128,
        on_lost: Callable[[LinkIOError], None] | None = None,
    ) -> None:
        """
        Initialize reader.

        Args:
            link: Link to read from
            buffer: Buffer receiving every non-empty read
            backoff: Seconds to wait after an empty read
            chunk_size: Maximum bytes per read
            on_lost: Called once, from the reader thread, if the link fails
        """
        self._link = link
        self._buffer = buffer
        self._backoff = backoff
        self._chunk_size = chunk_size
        self._on_lost = on_lost
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="uart-reader", daemon=True)
        self.state = ReaderState.CREATED
        self.error: LinkIOError | None = None

    def start(self) -> None:
        """Start the reader thread."""
        self.state = ReaderState.POLLING
        self._thread.start()

    def stop(self) -> None:
        """Signal the reader to exit at its next iteration."""
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the reader thread to exit."""
        if self._thread.is_alive():
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        """True while the thread is alive."""
        return self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.is_set():
            self.state = ReaderState.POLLING
            try:
                data = self._link.read(self._chunk_size)
            except LinkIOError as e:
                self._fail(e)
                return
            if data:
                self._buffer.append(data)
                continue
            # Lock already released by read(); writers can proceed during backoff
            self.state = ReaderState.IDLE_BACKOFF
            self._stop.wait(self._backoff)
        self.state = ReaderState.STOPPED
        logger.debug("Reader stopped")

    def _fail(self, error: LinkIOError) -> None:
        if self._stop.is_set():
            # Link was closed under us during a deliberate shutdown
            self.state = ReaderState.STOPPED
            return
        self.error = error
        self.state = ReaderState.FAILED
        logger.warning("Reader terminated: %s", error)
        if self._on_lost is not None:
            self._on_lost(error)
