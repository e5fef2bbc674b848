"""
Script panels: events, routing and the live registry.

Public exports:
    Panel: A live panel (id, name, text)
    PanelId: Panel identifier type
    PanelCreated, PanelAppended, PanelClosed: Event variants
    PanelEvent: Union of the event variants
    PanelIdAllocator: Strictly increasing id source
    PanelEventChannel: Bounded multi-producer, single-consumer queue
    PanelRegistry: Live panels owned by the presentation loop
"""

from uart_debug.panels.channel import PanelEventChannel
from uart_debug.panels.events import (
    Panel,
    PanelAppended,
    PanelClosed,
    PanelCreated,
    PanelEvent,
    PanelId,
    PanelIdAllocator,
)
from uart_debug.panels.registry import PanelRegistry

__all__ = [
    "Panel",
    "PanelAppended",
    "PanelClosed",
    "PanelCreated",
    "PanelEvent",
    "PanelEventChannel",
    "PanelId",
    "PanelIdAllocator",
    "PanelRegistry",
]
