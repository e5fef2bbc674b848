"""User script host.

Scripts are Python source run in a fresh namespace whose only host
functions are new_window() and write_wnd(). Both publish panel events;
the presentation loop applies them.

Public exports:
    HostCapabilities: The closed two-function host table
    ScriptRunner: Executes scripts with a deadline
    ScriptSource: Script text and display name
    ScriptResult: Outcome of a run
"""

from uart_debug.scripts.host import HostCapabilities
from uart_debug.scripts.runner import ScriptResult, ScriptRunner, ScriptSource

__all__ = [
    "HostCapabilities",
    "ScriptResult",
    "ScriptRunner",
    "ScriptSource",
]
