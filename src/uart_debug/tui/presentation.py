"""
PresentationLoop: the single consumer of panel events.

Each tick drains the PanelEventChannel without waiting and applies every
queued event to the PanelRegistry, so the backlog never grows across
frames while scripts publish faster than the display refreshes. An
optional per-tick cap bounds the work done in one frame.

The registry is owned here and only touched from the thread that calls
tick(), which is the asyncio loop in TUIController.
"""

from uart_debug.panels.events import PanelClosed, PanelId
from uart_debug.panels.registry import PanelRegistry
from uart_debug.session import Session


class PresentationLoop:
    """
    Tick-driven state holder for the display.

    Example:
        presentation = PresentationLoop(session)
        presentation.tick()
        for panel in presentation.registry:
            print(panel.name, panel.text)
    """

    def __init__(
        self,
        session: Session,
        registry: PanelRegistry | None = None,
        max_events_per_tick: int | None = None,
    ) -> None:
        """
        Args:
            session: Session whose channel and buffer are presented
            registry: Panel registry (fresh, honoring close events, if None)
            max_events_per_tick: Cap on events applied per tick, or None to
                drain the full backlog
        """
        self.session = session
        self.registry = registry if registry is not None else PanelRegistry()
        self.max_events_per_tick = max_events_per_tick
        self.ticks = 0
        self.events_applied = 0

    def tick(self) -> int:
        """
        Drain queued panel events into the registry.

        Returns:
            Number of events applied this tick
        """
        events = self.session.channel.drain(self.max_events_per_tick)
        applied = self.registry.apply_all(events)
        self.ticks += 1
        self.events_applied += applied
        return applied

    def close_panel(self, panel_id: PanelId) -> bool:
        """
        Remove a panel on user request.

        Returns:
            True if a live panel was removed
        """
        existed = panel_id in self.registry
        self.registry.apply(PanelClosed(panel_id))
        return existed and panel_id not in self.registry

    def close_newest_panel(self) -> PanelId | None:
        """Remove the most recently created panel. Returns its id, if any."""
        panel = self.registry.newest()
        if panel is None:
            return None
        return panel.panel_id if self.close_panel(panel.panel_id) else None
