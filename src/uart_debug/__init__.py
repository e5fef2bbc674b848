"""
UART Debug

Serial-link debugging tool with an embedded script host. This package
provides:

- Session: connect/disconnect, transmit, run scripts, upload firmware
- DeviceLink / ReaderLoop / ReceiveBuffer: concurrent device I/O
- PanelEventChannel / PanelRegistry: routing of script panel events
- ScriptRunner / HostCapabilities: the two-function script host
- TUI and CLI built on Rich and Typer
"""

__version__ = "0.1.0"

from uart_debug.config import LinkConfig, OverflowPolicy, Parity, Settings, StopBits
from uart_debug.exceptions import (
    LinkIOError,
    OpenError,
    PoolSaturatedError,
    ScriptError,
    ScriptTimeout,
    UartDebugError,
)
from uart_debug.session import LinkState, Session

__all__ = [
    "__version__",
    # Configuration
    "LinkConfig",
    "OverflowPolicy",
    "Parity",
    "Settings",
    "StopBits",
    # Session
    "LinkState",
    "Session",
    # Errors
    "LinkIOError",
    "OpenError",
    "PoolSaturatedError",
    "ScriptError",
    "ScriptTimeout",
    "UartDebugError",
]
