"""Shared fixtures and fakes for uart_debug tests."""

import threading
import time
from typing import Callable

import pytest

from uart_debug.config import LinkConfig, Settings
from uart_debug.device.link import DeviceLink
from uart_debug.panels.channel import PanelEventChannel
from uart_debug.panels.events import PanelIdAllocator
from uart_debug.session import Session


class FakeSerial:
    """In-memory stand-in for a pyserial handle.

    Bytes passed to feed() become readable; writes are recorded per call.
    Setting read_error / write_error makes the next access raise it.
    """

    def __init__(self) -> None:
        self.incoming = bytearray()
        self.written: list[bytes] = []
        self.read_error: Exception | None = None
        self.write_error: Exception | None = None
        self.closed = False
        self.read_sizes: list[int] = []
        self._lock = threading.Lock()

    def feed(self, data: bytes) -> None:
        with self._lock:
            self.incoming += data

    @property
    def in_waiting(self) -> int:
        if self.read_error is not None:
            raise self.read_error
        with self._lock:
            return len(self.incoming)

    def read(self, size: int = 1) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        with self._lock:
            data = bytes(self.incoming[:size])
            del self.incoming[:size]
        self.read_sizes.append(size)
        return data

    def write(self, data: bytes) -> int:
        if self.write_error is not None:
            raise self.write_error
        with self._lock:
            self.written.append(bytes(data))
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.005) -> bool:
    """Poll predicate until it is true or timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def fake_serial():
    """A fresh FakeSerial."""
    return FakeSerial()


@pytest.fixture
def link_config():
    """LinkConfig naming a port that only exists in tests."""
    return LinkConfig(port="fake://device")


@pytest.fixture
def link(fake_serial, link_config):
    """DeviceLink over a FakeSerial."""
    device_link = DeviceLink(fake_serial, link_config)
    yield device_link
    device_link.close()


@pytest.fixture
def settings():
    """Settings with short timeouts suitable for tests."""
    return Settings(
        reader_backoff_ms=2,
        refresh_interval_ms=10,
        script_timeout_s=5.0,
        firmware_block_delay_ms=0,
        max_workers=8,
        max_pending_tasks=64,
    )


@pytest.fixture
def channel():
    """A fresh unbounded-enough channel."""
    return PanelEventChannel(capacity=10_000)


@pytest.fixture
def allocator():
    """A fresh allocator starting at 0."""
    return PanelIdAllocator()


@pytest.fixture
def fake_session(settings, fake_serial):
    """Session whose opener wraps the shared FakeSerial."""
    session = Session(settings, opener=lambda config: DeviceLink(fake_serial, config))
    yield session
    session.close(wait=True)
