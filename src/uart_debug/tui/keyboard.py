"""
KeyboardTask for async keyboard input in the TUI.

Reads stdin in cbreak mode from an executor thread so the asyncio loop
never blocks. Each read returns everything currently available, so a
paste arrives as one chunk and escape sequences arrive whole.

select() with a short timeout keeps every executor call brief, which
lets stop() take effect quickly.
"""

import asyncio
import os
import select
import sys
import termios
import tty
from typing import Callable

READ_TIMEOUT = 0.1
MAX_CHUNK = 4096


def _read_available(fd: int, timeout: float) -> str | None:
    """
    Read whatever input is pending on fd.

    Does NOT change terminal modes; the caller sets cbreak mode.

    Args:
        fd: File descriptor to read
        timeout: Maximum seconds to wait for the first byte

    Returns:
        Decoded input, or None if nothing arrived
    """
    if not select.select([fd], [], [], timeout)[0]:
        return None
    data = os.read(fd, MAX_CHUNK)
    if not data:
        return None
    return data.decode("utf-8", errors="replace")


class KeyboardTask:
    """
    Async keyboard reader for the TUIController TaskGroup.

    Example:
        keyboard = KeyboardTask(on_input=handler.feed)
        tg.create_task(keyboard.run())
        # Later:
        keyboard.stop()
    """

    def __init__(self, on_input: Callable[[str], None]) -> None:
        """
        Args:
            on_input: Called on the event loop with each chunk of input
        """
        self._on_input = on_input
        self._shutdown = asyncio.Event()

    async def run(self) -> None:
        """
        Read keys until stop() is called.

        Sets cbreak mode once and restores the previous terminal
        settings on exit.
        """
        loop = asyncio.get_running_loop()
        fd = sys.stdin.fileno()
        old_settings = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            while not self._shutdown.is_set():
                chunk = await loop.run_in_executor(None, _read_available, fd, READ_TIMEOUT)
                if chunk:
                    self._on_input(chunk)
        finally:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)

    def stop(self) -> None:
        """Signal task to stop."""
        self._shutdown.set()
