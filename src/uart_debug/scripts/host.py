"""
Host capabilities exposed to user scripts.

The host surface is closed: scripts see exactly two functions and
nothing else is registered at runtime.

    new_window(name: str) -> int
        Create a panel and return its id.
    write_wnd(id: int, text: str) -> None
        Append text to a panel. Unknown ids are accepted here and
        ignored by the registry.

Both publish onto the PanelEventChannel; neither touches panels directly.
"""

from typing import Any, Callable

from uart_debug.panels.channel import PanelEventChannel
from uart_debug.panels.events import PanelAppended, PanelCreated, PanelId, PanelIdAllocator


def _require(value: Any, expected: type, function: str, param: str) -> None:
    # bool is an int subclass; a script passing True as an id is a mistake
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise TypeError(
            f"{function}() argument '{param}' must be {expected.__name__}, "
            f"got {type(value).__name__}"
        )


class HostCapabilities:
    """
    Capability table bound into one script's namespace.

    Closed over the shared channel and allocator, both safe for
    concurrent use, so any number of scripts may hold their own
    HostCapabilities at once.

    Example:
        host = HostCapabilities(channel, allocator)
        panel_id = host.new_window("log")
        host.write_wnd(panel_id, "hello")
    """

    FUNCTION_NAMES = ("new_window", "write_wnd")

    def __init__(self, channel: PanelEventChannel, allocator: PanelIdAllocator) -> None:
        self._channel = channel
        self._allocator = allocator

    def new_window(self, name: str) -> PanelId:
        """Create a panel named name and return its id."""
        _require(name, str, "new_window", "name")
        panel_id = self._allocator.next_id()
        self._channel.publish(PanelCreated(panel_id, name))
        return panel_id

    def write_wnd(self, panel_id: PanelId, text: str) -> None:
        """Append text to the panel with this id."""
        _require(panel_id, int, "write_wnd", "id")
        _require(text, str, "write_wnd", "text")
        self._channel.publish(PanelAppended(panel_id, text))

    def bindings(self) -> dict[str, Callable[..., Any]]:
        """Name-to-function table installed into the script namespace."""
        return {
            "new_window": self.new_window,
            "write_wnd": self.write_wnd,
        }
