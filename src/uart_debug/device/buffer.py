"""
ReceiveBuffer for bytes arriving from the device.

Append-only accumulator shared between the reader thread (the only
writer) and the presentation loop (reads and clears). Every operation
holds one threading.Lock, so a clear racing an append leaves either an
empty buffer or an empty buffer followed by whole appended chunks.

Bytes are stored raw. Text is decoded on read with replacement
characters, so a multi-byte character split across two reads still
renders correctly once both halves have arrived.
"""

import threading


class ReceiveBuffer:
    """
    Unbounded, lock-guarded byte accumulator.

    Example:
        buffer = ReceiveBuffer()
        buffer.append(b"ping")
        buffer.get_text()  # "ping"
        buffer.clear()
    """

    def __init__(self) -> None:
        """Initialize an empty buffer."""
        self._data = bytearray()
        self._lock = threading.Lock()

    def append(self, data: bytes) -> None:
        """
        Append one read's bytes as a contiguous run.

        Args:
            data: Bytes returned by a single device read
        """
        if not data:
            return
        with self._lock:
            self._data.extend(data)

    def get_bytes(self, n: int | None = None) -> bytes:
        """
        Get a snapshot of the raw bytes.

        Args:
            n: Return only the last n bytes, or everything if None

        Returns:
            Copy of the buffer contents
        """
        with self._lock:
            if n is not None:
                return bytes(self._data[-n:]) if n > 0 else b""
            return bytes(self._data)

    def get_text(self, n: int | None = None) -> str:
        """
        Get the contents decoded as UTF-8 with replacement characters.

        Args:
            n: Decode only the last n bytes, or everything if None
        """
        return self.get_bytes(n).decode("utf-8", errors="replace")

    def __len__(self) -> int:
        """Return number of bytes held."""
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        """Discard everything received so far."""
        with self._lock:
            self._data.clear()
