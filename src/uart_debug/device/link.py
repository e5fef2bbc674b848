"""
DeviceLink: exclusive access to one open serial handle.

The reader loop and every write task share a single DeviceLink. One
threading.Lock serializes all handle access. Critical sections are
short: a read only drains bytes the driver already holds, so an idle
device never keeps the lock while a writer waits.
"""

import logging
import threading

import serial

from uart_debug.config import LinkConfig
from uart_debug.exceptions import LinkIOError, OpenError

logger = logging.getLogger(__name__)


class DeviceLink:
    """
    Lock-guarded wrapper around a pyserial handle.

    Configuration is fixed at open time. Closing is the only mutation.

    Example:
        link = DeviceLink.open(LinkConfig(port="loop://"))
        link.write(b"ping")
        link.read()  # b"ping"
        link.close()
    """

    def __init__(self, handle: serial.SerialBase, config: LinkConfig | None = None) -> None:
        """
        Wrap an already-open handle.

        Args:
            handle: Open pyserial handle (or any object with the same
                read/write/in_waiting/flush/close surface)
            config: Configuration the handle was opened with, if known
        """
        self._handle: serial.SerialBase | None = handle
        self._lock = threading.Lock()
        self.config = config

    @classmethod
    def open(cls, config: LinkConfig) -> "DeviceLink":
        """
        Open the device described by config.

        Accepts plain device names and pyserial URLs (loop://, socket://, ...).

        Raises:
            OpenError: If the device is unavailable or the settings are rejected
        """
        try:
            handle = serial.serial_for_url(config.port, **config.to_serial_kwargs())
        except (serial.SerialException, ValueError, OSError) as e:
            logger.error("Failed to open %s: %s", config.port, e)
            raise OpenError(config.port, str(e)) from e
        logger.info("Opened %s", config.describe())
        return cls(handle, config)

    @property
    def is_open(self) -> bool:
        """True until close() is called."""
        return self._handle is not None

    def read(self, size: int = 128) -> bytes:
        """
        Read up to size bytes that have already arrived.

        Returns b"" when nothing is waiting or the read timed out; the
        caller decides how long to back off.

        Raises:
            LinkIOError: On any failure other than a timeout
        """
        with self._lock:
            if self._handle is None:
                raise LinkIOError("read", "link is closed")
            try:
                waiting = self._handle.in_waiting
                if not waiting:
                    return b""
                data = self._handle.read(min(waiting, size))
            except serial.SerialTimeoutException:
                return b""
            except (serial.SerialException, OSError) as e:
                raise LinkIOError("read", str(e)) from e
        return bytes(data)

    def write(self, data: bytes) -> None:
        """
        Write all of data in one locked call.

        Raises:
            LinkIOError: If the link is closed or the driver reports an error
        """
        with self._lock:
            if self._handle is None:
                raise LinkIOError("write", "link is closed")
            try:
                self._handle.write(data)
                self._handle.flush()
            except (serial.SerialException, OSError) as e:
                raise LinkIOError("write", str(e)) from e

    def close(self) -> None:
        """Close the handle. Safe to call more than once."""
        with self._lock:
            if self._handle is None:
                return
            handle, self._handle = self._handle, None
        try:
            handle.close()
        except (serial.SerialException, OSError) as e:
            logger.debug("Error while closing link: %s", e)
        logger.info("Closed link")
