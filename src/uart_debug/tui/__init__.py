"""
TUI module for the serial debugger.

This module provides the presentation side:
- PresentationLoop: Drains panel events into the registry each tick
- InputHandler, Mode: Key handling in Terminal and Debug modes
- KeyboardTask: Async stdin reader
- TUIController: Rich Live display, update loop and signal handling
- create_layout, make_panel, format_hex: Layout and rendering helpers
"""

from uart_debug.tui.controller import TUIController
from uart_debug.tui.input import InputHandler, Mode
from uart_debug.tui.keyboard import KeyboardTask
from uart_debug.tui.layout import create_layout, format_hex, make_panel
from uart_debug.tui.presentation import PresentationLoop

__all__ = [
    "InputHandler",
    "KeyboardTask",
    "Mode",
    "PresentationLoop",
    "TUIController",
    "create_layout",
    "format_hex",
    "make_panel",
]
