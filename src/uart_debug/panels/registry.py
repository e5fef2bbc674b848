"""
PanelRegistry: the live set of script panels.

Owned by the presentation loop and never touched from another thread.
Applying events:
- PanelCreated inserts an empty panel
- PanelAppended concatenates onto the panel with that id
- PanelClosed removes the panel if honor_close is set, else is ignored
Events naming an unknown id are ignored.
"""

import logging
from collections.abc import Iterable, Iterator

from uart_debug.panels.events import (
    Panel,
    PanelAppended,
    PanelClosed,
    PanelCreated,
    PanelEvent,
    PanelId,
)

logger = logging.getLogger(__name__)


class PanelRegistry:
    """
    Panels keyed by id, in creation order.

    Example:
        registry = PanelRegistry()
        registry.apply(PanelCreated(0, "log"))
        registry.apply(PanelAppended(0, "hello"))
        registry.get(0).text  # "hello"
    """

    def __init__(self, honor_close: bool = True) -> None:
        """
        Initialize an empty registry.

        Args:
            honor_close: Remove panels on PanelClosed. When False, panels
                live for the whole session and close events are ignored.
        """
        self._panels: dict[PanelId, Panel] = {}
        self.honor_close = honor_close

    def apply(self, event: PanelEvent) -> None:
        """Apply one event."""
        if isinstance(event, PanelCreated):
            self._panels[event.panel_id] = Panel(event.panel_id, event.name)
        elif isinstance(event, PanelAppended):
            panel = self._panels.get(event.panel_id)
            if panel is None:
                logger.debug("Append to unknown panel %s ignored", event.panel_id)
                return
            panel.text += event.text
        elif isinstance(event, PanelClosed):
            if not self.honor_close:
                return
            if self._panels.pop(event.panel_id, None) is None:
                logger.debug("Close of unknown panel %s ignored", event.panel_id)
        else:
            raise TypeError(f"Not a panel event: {event!r}")

    def apply_all(self, events: Iterable[PanelEvent]) -> int:
        """Apply events in order. Returns how many were applied."""
        count = 0
        for event in events:
            self.apply(event)
            count += 1
        return count

    def get(self, panel_id: PanelId) -> Panel | None:
        """Return the panel with this id, or None."""
        return self._panels.get(panel_id)

    def newest(self) -> Panel | None:
        """Return the most recently created live panel, or None."""
        if not self._panels:
            return None
        return next(reversed(self._panels.values()))

    def __contains__(self, panel_id: object) -> bool:
        return panel_id in self._panels

    def __len__(self) -> int:
        return len(self._panels)

    def __iter__(self) -> Iterator[Panel]:
        """Iterate live panels in creation order."""
        return iter(list(self._panels.values()))
