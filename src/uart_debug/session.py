"""
Session: one debugging session's connection and background work.

The session owns:
- the current DeviceLink and its ReaderLoop (at most one of each)
- the ReceiveBuffer the reader fills
- the producer side of the PanelEventChannel and the PanelIdAllocator
- a WorkerPool for write tasks and a separate one for scripts and
  firmware uploads; writes never queue behind a running script

connect() always stops and joins the previous reader before a new link
is opened, so two readers never race on a stale handle. A reader that
dies on an I/O error moves the session to LinkState.LOST with the
error text in lost_reason.
"""

import functools
import logging
import threading
from concurrent.futures import Future
from enum import Enum
from pathlib import Path
from typing import Callable

from uart_debug.config import LinkConfig, Settings
from uart_debug.device.buffer import ReceiveBuffer
from uart_debug.device.firmware import upload_firmware
from uart_debug.device.link import DeviceLink
from uart_debug.device.reader import ReaderLoop
from uart_debug.exceptions import LinkIOError, PoolSaturatedError
from uart_debug.panels.channel import PanelEventChannel
from uart_debug.panels.events import PanelIdAllocator
from uart_debug.scripts.host import HostCapabilities
from uart_debug.scripts.runner import ScriptRunner, ScriptSource
from uart_debug.workers import WorkerPool

logger = logging.getLogger(__name__)

READER_JOIN_TIMEOUT = 2.0


class LinkState(Enum):
    """Connection state as seen by the presentation loop."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    LOST = "lost"


def _write_task(link: DeviceLink, data: bytes) -> None:
    try:
        link.write(data)
    except LinkIOError as e:
        logger.debug("Dropped write of %d bytes: %s", len(data), e)


class Session:
    """
    Connection owner and task launcher.

    Example:
        with Session(Settings()) as session:
            session.connect(LinkConfig(port="loop://"))
            session.send(b"ping")
            session.run_script(ScriptSource.from_path("probe.py"))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        channel: PanelEventChannel | None = None,
        allocator: PanelIdAllocator | None = None,
        pool: WorkerPool | None = None,
        write_pool: WorkerPool | None = None,
        opener: Callable[[LinkConfig], DeviceLink] = DeviceLink.open,
    ) -> None:
        """
        Initialize a disconnected session.

        Args:
            settings: Tuning knobs (defaults read from the environment)
            channel: Panel event channel (built from settings if None)
            allocator: Panel id source (fresh if None)
            pool: Script and upload pool (built from settings if None)
            write_pool: Write task pool (built from settings if None)
            opener: Function opening a DeviceLink for a LinkConfig
        """
        self.settings = settings if settings is not None else Settings()
        self.buffer = ReceiveBuffer()
        self.channel = channel if channel is not None else PanelEventChannel(
            capacity=self.settings.channel_capacity,
            overflow=self.settings.channel_overflow,
            block_timeout=self.settings.channel_block_timeout_s,
        )
        self.allocator = allocator if allocator is not None else PanelIdAllocator()
        self._pool = pool if pool is not None else WorkerPool(
            max_workers=self.settings.max_workers,
            max_pending=self.settings.max_pending_tasks,
        )
        self._write_pool = write_pool if write_pool is not None else WorkerPool(
            max_workers=self.settings.write_workers,
            max_pending=self.settings.max_pending_writes,
        )
        self._opener = opener
        self._runner = ScriptRunner(
            HostCapabilities(self.channel, self.allocator),
            timeout=self.settings.script_timeout_s,
        )

        # _connect_lock serializes connect/disconnect; _state_lock guards the
        # fields below and is never held while joining the reader.
        self._connect_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._link: DeviceLink | None = None
        self._reader: ReaderLoop | None = None
        self._state = LinkState.DISCONNECTED
        self._lost_reason: str | None = None
        self.config: LinkConfig | None = None

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def state(self) -> LinkState:
        with self._state_lock:
            return self._state

    @property
    def lost_reason(self) -> str | None:
        """Error that ended the last reader, if the link was lost."""
        with self._state_lock:
            return self._lost_reason

    @property
    def reader(self) -> ReaderLoop | None:
        with self._state_lock:
            return self._reader

    def connect(self, config: LinkConfig) -> None:
        """
        Open a new link and start its reader.

        Any existing connection is torn down first.

        Raises:
            OpenError: If the device cannot be opened; the session is
                left disconnected
        """
        with self._connect_lock:
            self._teardown()
            link = self._opener(config)
            reader = ReaderLoop(
                link,
                self.buffer,
                backoff=self.settings.reader_backoff_ms / 1000.0,
                chunk_size=self.settings.read_chunk_size,
                on_lost=functools.partial(self._mark_lost, link),
            )
            with self._state_lock:
                self._link = link
                self._reader = reader
                self._state = LinkState.CONNECTED
                self._lost_reason = None
                self.config = config
            reader.start()
            logger.info("Connected to %s", config.describe())

    def disconnect(self) -> None:
        """Stop the reader and close the link. Safe when not connected."""
        with self._connect_lock:
            was_connected = self._teardown()
        if was_connected:
            logger.info("Disconnected")

    def _teardown(self) -> bool:
        with self._state_lock:
            link, reader = self._link, self._reader
            self._link = None
            self._reader = None
            self._state = LinkState.DISCONNECTED
        if reader is not None:
            reader.stop()
            reader.join(READER_JOIN_TIMEOUT)
            if reader.running:
                logger.warning("Reader did not stop within %.1fs", READER_JOIN_TIMEOUT)
        if link is not None:
            link.close()
        return link is not None

    def _mark_lost(self, link: DeviceLink, error: LinkIOError) -> None:
        with self._state_lock:
            if self._link is not link:
                return
            self._state = LinkState.LOST
            self._lost_reason = error.reason
        logger.warning("Connection lost: %s", error.reason)

    def _submit(
        self, label: str, fn: Callable, *args, pool: WorkerPool | None = None
    ) -> Future | None:
        pool = pool if pool is not None else self._pool
        try:
            return pool.submit(label, fn, *args)
        except PoolSaturatedError:
            return None

    def send(self, data: bytes) -> Future | None:
        """
        Transmit data from a short-lived write task.

        Fire-and-forget: failures are logged and dropped. Bytes within one
        call are written together; order across concurrent calls is not
        guaranteed.

        Returns:
            Future of the write task, or None if not connected or the pool
            is saturated
        """
        with self._state_lock:
            link = self._link if self._state is LinkState.CONNECTED else None
        if link is None:
            logger.debug("Not connected, dropped %d bytes", len(data))
            return None
        return self._submit("write", _write_task, link, data, pool=self._write_pool)

    def run_script(self, source: ScriptSource) -> Future | None:
        """
        Run a user script on a worker thread.

        Returns:
            Future resolving to a ScriptResult, or None if the pool is saturated
        """
        return self._submit("script", self._runner.run, source)

    def upload_firmware(self, path: Path, pad_byte: int | None = None) -> Future | None:
        """
        Stream a firmware image to the device from one worker task.

        Blocks are written in order by a single task.

        Returns:
            Future resolving to an UploadResult, or None if not connected or
            the pool is saturated
        """
        with self._state_lock:
            link = self._link if self._state is LinkState.CONNECTED else None
        if link is None:
            logger.warning("Not connected, upload of %s skipped", path)
            return None
        return self._submit(
            "upload",
            upload_firmware,
            link,
            Path(path),
            self.settings.firmware_block_size,
            self.settings.firmware_block_delay_ms / 1000.0,
            pad_byte,
        )

    def clear_receive_buffer(self) -> None:
        """Discard everything received so far."""
        self.buffer.clear()

    @property
    def pending_tasks(self) -> int:
        return self._pool.pending + self._write_pool.pending

    def close(self, wait: bool = False) -> None:
        """Disconnect and shut down the worker pools."""
        self.disconnect()
        self._pool.shutdown(wait=wait)
        self._write_pool.shutdown(wait=wait)
