"""
Exception classes for the serial debugger.

This module defines the error taxonomy shared by the device layer,
the worker pool and the script host:
- OpenError: Device unavailable or misconfigured at connect time
- LinkIOError: Read or write failure on an open link
- ScriptError: User script failed (syntax, runtime, host misuse)
- ScriptTimeout: User script exceeded its execution deadline
- PoolSaturatedError: Worker pool refused new work

Unknown panel ids are never errors and have no exception here.
"""


class UartDebugError(Exception):
    """Base class for all serial debugger errors."""


class OpenError(UartDebugError):
    """
    Raised when a device cannot be opened.

    The connection attempt is aborted and not retried.

    Attributes:
        port: Port identifier that was requested
        reason: Underlying error message
    """

    def __init__(self, port: str, reason: str) -> None:
        self.port = port
        self.reason = reason
        super().__init__(f"Failed to open port {port}: {reason}")


class LinkIOError(UartDebugError):
    """
    Raised when a read or write on an open link fails.

    Timeouts are not errors and never raise this.

    Attributes:
        operation: "read" or "write"
        reason: Underlying error message
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Link {operation} failed: {reason}")


class ScriptError(UartDebugError):
    """
    Raised when a user script fails.

    Attributes:
        script_name: Display name of the script (usually its path)
        reason: Formatted interpreter error
    """

    def __init__(self, script_name: str, reason: str) -> None:
        self.script_name = script_name
        self.reason = reason
        super().__init__(f"Script {script_name} failed: {reason}")


class ScriptTimeout(ScriptError):
    """Raised when a user script runs past its deadline."""

    def __init__(self, script_name: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(script_name, f"timed out after {timeout}s")


class PoolSaturatedError(UartDebugError):
    """
    Raised when the worker pool has no room for another task.

    Attributes:
        pending: Number of tasks queued or running at rejection time
    """

    def __init__(self, pending: int) -> None:
        self.pending = pending
        super().__init__(f"Worker pool saturated ({pending} tasks pending)")
