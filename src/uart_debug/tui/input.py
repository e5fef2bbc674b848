"""
Key handling for the debugger TUI.

Two modes:
- TERMINAL: printable characters go to the device as typed, Tab as
  "\\t" and Enter as "\\r\\n"
- DEBUG: keys edit a local input line; Enter sends the line as-is, or
  runs it as a command when it starts with ":"

Control keys work in both modes:
    Ctrl-T  toggle mode
    Ctrl-L  clear the receive buffer
    Ctrl-W  close the newest script panel
    Ctrl-X  quit

Commands (DEBUG mode):
    :run PATH      run a script
    :upload PATH   stream a firmware image
    :clear         clear the receive buffer
    :close ID      close a script panel
    :quit          quit
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Iterator

from uart_debug.scripts.runner import ScriptSource
from uart_debug.session import Session
from uart_debug.tui.presentation import PresentationLoop

logger = logging.getLogger(__name__)

KEY_TOGGLE_MODE = "\x14"  # Ctrl-T
KEY_CLEAR = "\x0c"  # Ctrl-L
KEY_CLOSE_PANEL = "\x17"  # Ctrl-W
KEY_QUIT = "\x18"  # Ctrl-X
KEY_BACKSPACE = ("\x7f", "\x08")
KEY_ENTER = ("\r", "\n")
KEY_TAB = "\t"


class Mode(str, Enum):
    """Keyboard mode."""

    TERMINAL = "terminal"
    DEBUG = "debug"


def split_keys(chunk: str) -> Iterator[str]:
    """
    Split raw terminal input into keys.

    Escape sequences such as arrow keys ("\\x1b[A") are kept together;
    everything else is one character per key.
    """
    i = 0
    while i < len(chunk):
        char = chunk[i]
        if char == "\x1b" and chunk[i + 1 : i + 2] == "[" and i + 2 < len(chunk):
            yield chunk[i : i + 3]
            i += 3
            continue
        yield char
        i += 1


class InputHandler:
    """
    Maps keys to session and presentation actions.

    Example:
        handler = InputHandler(session, presentation, on_quit=shutdown.set)
        handler.feed("hello\\n")  # DEBUG mode: sends b"hello"
    """

    def __init__(
        self,
        session: Session,
        presentation: PresentationLoop,
        mode: Mode = Mode.DEBUG,
        on_quit: Callable[[], None] | None = None,
    ) -> None:
        self.session = session
        self.presentation = presentation
        self.mode = mode
        self.line = ""
        self.message = ""
        self._on_quit = on_quit

    def feed(self, chunk: str) -> None:
        """
        Handle a chunk of raw input (one key or a paste).

        In TERMINAL mode consecutive device-bound keys from one chunk are
        sent in a single write so a paste keeps its byte order.
        """
        outgoing = bytearray()
        for key in split_keys(chunk):
            data = self._terminal_bytes(key) if self.mode is Mode.TERMINAL else None
            if data is not None:
                outgoing += data
                continue
            if outgoing:
                self.session.send(bytes(outgoing))
                outgoing.clear()
            self.handle_key(key)
        if outgoing:
            self.session.send(bytes(outgoing))

    def handle_key(self, key: str) -> None:
        """Handle a single key."""
        if key == KEY_TOGGLE_MODE:
            self.mode = Mode.DEBUG if self.mode is Mode.TERMINAL else Mode.TERMINAL
            self.message = f"{self.mode.value} mode"
        elif key == KEY_CLEAR:
            self.session.clear_receive_buffer()
        elif key == KEY_CLOSE_PANEL:
            closed = self.presentation.close_newest_panel()
            self.message = "no panels" if closed is None else f"closed panel {closed}"
        elif key == KEY_QUIT:
            self._quit()
        elif self.mode is Mode.TERMINAL:
            self._terminal_key(key)
        else:
            self._debug_key(key)

    def _terminal_key(self, key: str) -> None:
        data = self._terminal_bytes(key)
        if data is not None:
            self.session.send(data)

    @staticmethod
    def _terminal_bytes(key: str) -> bytes | None:
        if key in KEY_ENTER:
            return b"\r\n"
        if key == KEY_TAB:
            return b"\t"
        if key.isprintable():
            return key.encode("utf-8")
        return None

    def _debug_key(self, key: str) -> None:
        if key in KEY_ENTER:
            line, self.line = self.line, ""
            self.submit(line)
        elif key in KEY_BACKSPACE:
            self.line = self.line[:-1]
        elif key == KEY_TAB:
            self.line += "\t"
        elif key.isprintable():
            self.line += key

    def submit(self, line: str) -> None:
        """Send a line, or run it as a command if it starts with ":"."""
        if line.startswith(":"):
            self.run_command(line[1:].strip())
        elif line:
            self.session.send(line.encode("utf-8"))

    def run_command(self, command: str) -> None:
        """Run a ":" command (without the colon)."""
        logger.debug("Command: %s", command)
        name, _, arg = command.partition(" ")
        arg = arg.strip()
        if name == "run" and arg:
            try:
                source = ScriptSource.from_path(arg)
            except OSError as e:
                self.message = f"cannot read {arg}: {e.strerror}"
                return
            except UnicodeDecodeError:
                self.message = f"cannot read {arg}: not valid UTF-8"
                return
            future = self.session.run_script(source)
            self.message = f"running {arg}" if future is not None else "worker pool busy"
        elif name == "upload" and arg:
            if not Path(arg).is_file():
                self.message = f"no such file: {arg}"
                return
            future = self.session.upload_firmware(Path(arg))
            self.message = f"uploading {arg}" if future is not None else "not connected"
        elif name == "clear":
            self.session.clear_receive_buffer()
            self.message = "cleared"
        elif name == "close" and arg:
            try:
                panel_id = int(arg)
            except ValueError:
                self.message = f"bad panel id: {arg}"
                return
            closed = self.presentation.close_panel(panel_id)
            self.message = f"closed panel {panel_id}" if closed else f"no panel {panel_id}"
        elif name == "quit":
            self._quit()
        else:
            self.message = f"unknown command: {command}"

    def _quit(self) -> None:
        self.message = "quitting"
        if self._on_quit is not None:
            self._on_quit()
