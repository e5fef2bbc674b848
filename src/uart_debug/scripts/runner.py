"""Execution of user scripts against the panel host API.

Each run gets a fresh interpreter namespace holding only the builtins
and the two host functions. Scripts are plain Python, so the classic
form works unchanged:

    id = new_window("log"); write_wnd(id, "hello "); write_wnd(id, "world")

Failures never escape run(): syntax errors, exceptions raised by the
script and deadline overruns are logged and returned as a ScriptResult.

The deadline is enforced with a trace hook installed on the executing
thread. It fires on every line of script code, so a busy loop is
interrupted too. Time spent blocked inside a single call (e.g. a long
time.sleep) is only noticed once that call returns.
"""

import builtins
import logging
import sys
import time
import traceback
from dataclasses import dataclass
from pathlib import Path

from uart_debug.exceptions import ScriptError, ScriptTimeout
from uart_debug.scripts.host import HostCapabilities

logger = logging.getLogger(__name__)


class _DeadlineExceeded(BaseException):
    # BaseException so `except Exception` in a script cannot swallow it
    pass


@dataclass
class ScriptSource:
    """Script text plus the name used in errors and tracebacks."""

    name: str
    text: str

    @classmethod
    def from_path(cls, path: Path | str) -> "ScriptSource":
        """Read a script file as UTF-8."""
        path = Path(path)
        return cls(name=str(path), text=path.read_text(encoding="utf-8"))


@dataclass
class ScriptResult:
    """Outcome of one script run.

    Attributes:
        name: Script name
        success: Whether the script ran to completion
        error: Formatted error if it did not
        timeout: Whether the deadline was hit
        duration: Wall-clock seconds spent
    """

    name: str
    success: bool
    error: str | None = None
    timeout: bool = False
    duration: float = 0.0


class ScriptRunner:
    """Runs scripts with a bound HostCapabilities table.

    One runner may execute many scripts, one per call, from any thread.
    """

    DEFAULT_TIMEOUT = 60.0

    def __init__(self, host: HostCapabilities, timeout: float | None = DEFAULT_TIMEOUT):
        """
        Args:
            host: Capabilities bound into every script namespace
            timeout: Seconds before a script is aborted, or None for no limit
        """
        self._host = host
        self._timeout = timeout

    def run(self, source: ScriptSource) -> ScriptResult:
        """Execute a script to completion and report how it went."""
        started = time.monotonic()
        logger.info("Running script %s", source.name)
        try:
            self._execute(source)
        except ScriptError as e:
            duration = time.monotonic() - started
            logger.error("%s", e)
            return ScriptResult(
                name=source.name,
                success=False,
                error=e.reason,
                timeout=isinstance(e, ScriptTimeout),
                duration=duration,
            )
        duration = time.monotonic() - started
        logger.info("Script %s finished in %.3fs", source.name, duration)
        return ScriptResult(name=source.name, success=True, duration=duration)

    def _execute(self, source: ScriptSource) -> None:
        try:
            code = compile(source.text, source.name, "exec")
        except SyntaxError as e:
            raise ScriptError(source.name, f"line {e.lineno}: SyntaxError: {e.msg}") from e
        except ValueError as e:
            # Python 3.11 reports NUL bytes in the source this way
            raise ScriptError(source.name, f"ValueError: {e}") from e

        namespace = {"__name__": "__script__", "__builtins__": builtins}
        namespace.update(self._host.bindings())

        previous_trace = sys.gettrace()
        if self._timeout is not None:
            sys.settrace(_deadline_tracer(source.name, time.monotonic() + self._timeout))
        try:
            exec(code, namespace)
        except _DeadlineExceeded:
            raise ScriptTimeout(source.name, self._timeout) from None
        except Exception as e:
            raise ScriptError(source.name, _describe(e, source.name)) from e
        finally:
            sys.settrace(previous_trace)


def _deadline_tracer(filename: str, deadline: float):
    def tracer(frame, event, arg):
        if frame.f_code.co_filename != filename:
            return None
        if time.monotonic() >= deadline:
            raise _DeadlineExceeded()
        return tracer

    return tracer


def _describe(error: Exception, filename: str) -> str:
    """Format an exception with the last script line it passed through."""
    message = "".join(traceback.format_exception_only(type(error), error)).strip()
    frames = [f for f in traceback.extract_tb(error.__traceback__) if f.filename == filename]
    if frames:
        return f"line {frames[-1].lineno}: {message}"
    return message
