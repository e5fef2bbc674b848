"""
Panel events and identifier allocation.

A panel is a named text area created by a user script. Scripts never
touch panels directly; they publish events that the presentation loop
applies later:

- PanelCreated(panel_id, name): a new, empty panel
- PanelAppended(panel_id, text): text to concatenate onto a panel
- PanelClosed(panel_id): remove a panel

Ids come from a PanelIdAllocator passed explicitly to every producer.
"""

import itertools
import threading
from dataclasses import dataclass, field

PanelId = int


@dataclass(frozen=True)
class PanelCreated:
    """A script created a panel."""

    panel_id: PanelId
    name: str


@dataclass(frozen=True)
class PanelAppended:
    """A script appended text to a panel."""

    panel_id: PanelId
    text: str


@dataclass(frozen=True)
class PanelClosed:
    """A panel should be removed."""

    panel_id: PanelId


PanelEvent = PanelCreated | PanelAppended | PanelClosed


@dataclass
class Panel:
    """
    A live panel owned by the PanelRegistry.

    Attributes:
        panel_id: Unique id issued by the allocator
        name: Title given by the script (not unique)
        text: Everything appended so far
    """

    panel_id: PanelId
    name: str
    text: str = field(default="")


class PanelIdAllocator:
    """
    Strictly increasing id source, starting at 0.

    Safe to share between any number of script threads. Ids are never
    reused, even after the panel they named is closed.

    Example:
        allocator = PanelIdAllocator()
        allocator.next_id()  # 0
        allocator.next_id()  # 1
    """

    def __init__(self, start: PanelId = 0) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> PanelId:
        """Return a fresh id."""
        with self._lock:
            return next(self._counter)
