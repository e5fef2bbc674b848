"""
TUIController: the single-threaded presentation side of the debugger.

Runs one asyncio TaskGroup holding:
- the update loop: every refresh interval it ticks the PresentationLoop
  (draining panel events), rebuilds the layout from the session's state
  and refreshes the Rich Live display
- the keyboard task: feeds input chunks to the InputHandler

Nothing here blocks. Device reads, writes and scripts all run on
background threads owned by the Session.

Signal handlers are registered first thing in run() so Ctrl+C works
during startup, and the Live context restores the terminal on exit.
"""

import asyncio
import functools
import logging
import signal
import sys

from rich.console import Console
from rich.live import Live

from uart_debug.panels.registry import PanelRegistry
from uart_debug.scripts.runner import ScriptSource
from uart_debug.session import Session
from uart_debug.tui.input import InputHandler, Mode
from uart_debug.tui.keyboard import KeyboardTask
from uart_debug.tui.layout import (
    create_layout,
    format_hex,
    make_panel,
    make_panels_view,
    make_status_panel,
    tail_lines,
)
from uart_debug.tui.presentation import PresentationLoop

logger = logging.getLogger(__name__)

RX_TAIL_BYTES = 4096
RX_VISIBLE_LINES = 40
KEY_HINTS = "Ctrl-T mode  Ctrl-L clear  Ctrl-W close panel  Ctrl-X quit"


class TUIController:
    """
    Controls the TUI lifecycle.

    Example:
        controller = TUIController(session)
        await controller.run()  # Runs until Ctrl-X or Ctrl+C
    """

    def __init__(
        self,
        session: Session,
        presentation: PresentationLoop | None = None,
        mode: Mode = Mode.DEBUG,
        console: Console | None = None,
        scripts: list[ScriptSource] | None = None,
        refresh_interval: float | None = None,
    ) -> None:
        """
        Initialize TUI controller.

        Args:
            session: Session to present and drive
            presentation: Presentation loop (built from session settings if None)
            mode: Initial keyboard mode
            console: Rich Console to use (creates default if None)
            scripts: Scripts to run once the display is up
            refresh_interval: Seconds between ticks (settings value if None)
        """
        settings = session.settings
        self.session = session
        self.console = console if console is not None else Console()
        self.presentation = presentation if presentation is not None else PresentationLoop(
            session,
            registry=PanelRegistry(honor_close=settings.honor_close),
            max_events_per_tick=settings.max_events_per_tick,
        )
        self.input = InputHandler(session, self.presentation, mode=mode, on_quit=self.stop)
        self.refresh_interval = (
            refresh_interval
            if refresh_interval is not None
            else settings.refresh_interval_ms / 1000.0
        )
        self._scripts = list(scripts or [])
        self._layout = create_layout()
        self._shutdown = asyncio.Event()
        self._keyboard: KeyboardTask | None = None

    async def run(self) -> None:
        """
        Run the TUI until shutdown.

        Order:
        1. Register signal handlers
        2. Submit startup scripts
        3. Enter Live context
        4. Run update loop and keyboard task in a TaskGroup
        """
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, functools.partial(self._handle_signal, sig))

        for source in self._scripts:
            self.session.run_script(source)

        if sys.stdin.isatty():
            self._keyboard = KeyboardTask(on_input=self.input.feed)
        else:
            logger.warning("stdin is not a terminal; keyboard input disabled")

        with Live(
            self.render(),
            console=self.console,
            auto_refresh=False,
            screen=True,
        ) as live:
            try:
                async with asyncio.TaskGroup() as tg:
                    if self._keyboard is not None:
                        tg.create_task(self._keyboard.run())
                    tg.create_task(self._update_loop(live))
            except* Exception as group:
                for error in group.exceptions:
                    logger.error("TUI task failed: %s", error, exc_info=error)

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)

    async def _update_loop(self, live: Live) -> None:
        """Tick, render and refresh until shutdown."""
        while not self._shutdown.is_set():
            self.presentation.tick()
            live.update(self.render(), refresh=True)
            try:
                await asyncio.wait_for(self._shutdown.wait(), timeout=self.refresh_interval)
            except asyncio.TimeoutError:
                pass  # Normal refresh interval

    def _handle_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down", sig.name)
        self.stop()

    def stop(self) -> None:
        """Stop the update loop and keyboard task."""
        self._shutdown.set()
        if self._keyboard is not None:
            self._keyboard.stop()

    def render(self):
        """Rebuild the layout from current session and registry state."""
        session = self.session
        config = session.config
        panels = list(self.presentation.registry)

        self._layout["status"].update(
            make_status_panel(
                link=config.describe() if config is not None else "",
                state=session.state.value,
                mode=self.input.mode.value,
                panel_count=len(panels),
                dropped_events=session.channel.dropped,
                pending_tasks=session.pending_tasks,
                lost_reason=session.lost_reason,
                message=self.input.message,
            )
        )

        rx = session.buffer.get_bytes(RX_TAIL_BYTES)
        self._layout["body"]["ascii"].update(
            make_panel(
                tail_lines(rx.decode("utf-8", errors="replace"), RX_VISIBLE_LINES),
                "Receive",
                "cyan",
            )
        )
        self._layout["body"]["hex"].update(
            make_panel(tail_lines(format_hex(rx), RX_VISIBLE_LINES), "Hex", "blue")
        )
        self._layout["body"]["panels"].update(make_panels_view(panels))

        if self.input.mode is Mode.DEBUG:
            self._layout["input"].update(make_panel(f"> {self.input.line}", KEY_HINTS, "white"))
        else:
            self._layout["input"].update(
                make_panel("keys are sent to the device", KEY_HINTS, "white")
            )
        return self._layout
