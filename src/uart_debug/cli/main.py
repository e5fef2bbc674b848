"""UART Debug CLI - serial-link debugging with scriptable panels."""

import asyncio
import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from uart_debug.config import (
    DEFAULT_BAUD_RATE,
    MAX_BAUD_RATE,
    MIN_BAUD_RATE,
    LinkConfig,
    Parity,
    Settings,
    StopBits,
)
from uart_debug.device import list_ports
from uart_debug.exceptions import OpenError
from uart_debug.panels.registry import PanelRegistry
from uart_debug.scripts.runner import ScriptSource
from uart_debug.session import Session
from uart_debug.tui.controller import TUIController
from uart_debug.tui.input import Mode
from uart_debug.tui.presentation import PresentationLoop

app = typer.Typer(
    name="uart-debug",
    help="Serial-link debugging tool with a scriptable panel host",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def configure_logging(settings: Settings, log_console: Console, floor: int = logging.NOTSET) -> None:
    """
    Configure the root logger once per process.

    Logs go to settings.log_file when set, otherwise through Rich on
    log_console at no less than floor.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if settings.log_file is not None:
        handler: logging.Handler = logging.FileHandler(settings.log_file)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s")
        )
    else:
        handler = RichHandler(console=log_console, show_path=False)
        level = max(level, floor)
    logging.basicConfig(level=level, handlers=[handler], force=True)


def _settings(log_level: str | None, log_file: Path | None) -> Settings:
    overrides = {}
    if log_level:
        overrides["log_level"] = log_level
    if log_file is not None:
        overrides["log_file"] = log_file
    return Settings(**overrides)


def _connect(session: Session, config: LinkConfig) -> None:
    try:
        session.connect(config)
    except OpenError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


PortArg = typer.Argument(..., help="Device path or pyserial URL (e.g. /dev/ttyUSB0, loop://)")
BaudOpt = typer.Option(
    DEFAULT_BAUD_RATE,
    "--baud",
    "-b",
    min=MIN_BAUD_RATE,
    max=MAX_BAUD_RATE,
    help="Baud rate",
)
ParityOpt = typer.Option(Parity.NONE, "--parity", "-p", help="Parity")
StopBitsOpt = typer.Option(StopBits.ONE, "--stop-bits", "-s", help="Stop bits")
LogLevelOpt = typer.Option(None, "--log-level", help="Log level (default from UART_DEBUG_LOG_LEVEL)")
LogFileOpt = typer.Option(None, "--log-file", help="Write logs to this file")


@app.command("ports")
def ports() -> None:
    """List serial ports reported by the operating system."""
    found = list_ports()
    if not found:
        console.print("[yellow]No serial ports found[/yellow]")
        return
    table = Table(title="Serial ports")
    table.add_column("Device", style="cyan")
    table.add_column("Description")
    for device, description in found:
        table.add_row(device, description)
    console.print(table)


@app.command("connect")
def connect(
    port: str = PortArg,
    baud: int = BaudOpt,
    parity: Parity = ParityOpt,
    stop_bits: StopBits = StopBitsOpt,
    script: list[Path] = typer.Option(
        None, "--script", help="Script to run after connecting (repeatable)"
    ),
    mode: Mode = typer.Option(Mode.DEBUG, "--mode", "-m", help="Initial keyboard mode"),
    log_level: str = LogLevelOpt,
    log_file: Path = LogFileOpt,
) -> None:
    """
    Open the interactive debugger on a serial port.

    Received bytes stream into ASCII and hex views. Scripts given with
    --script (or later with ":run PATH") create panels beside them.
    """
    settings = _settings(log_level, log_file)
    configure_logging(settings, console, floor=logging.WARNING)
    config = LinkConfig(
        port=port,
        baud_rate=baud,
        parity=parity,
        stop_bits=stop_bits,
        read_timeout_ms=settings.read_timeout_ms,
    )
    try:
        sources = [ScriptSource.from_path(path) for path in script or []]
    except (OSError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Cannot read script: {e}[/red]")
        raise typer.Exit(1)

    with Session(settings) as session:
        _connect(session, config)
        controller = TUIController(session, mode=mode, console=console, scripts=sources)
        asyncio.run(controller.run())
    console.print("[green]Session closed[/green]")


@app.command("run-script")
def run_script(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Script file"),
    timeout: float = typer.Option(None, "--timeout", "-t", help="Script timeout in seconds"),
    log_level: str = LogLevelOpt,
    log_file: Path = LogFileOpt,
) -> None:
    """
    Run a script without a device and print the panels it creates.

    Exits with status 1 if the script fails.
    """
    settings = _settings(log_level, log_file)
    if timeout is not None:
        settings.script_timeout_s = timeout
    configure_logging(settings, err_console)

    try:
        source = ScriptSource.from_path(path)
    except (OSError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Cannot read script: {e}[/red]")
        raise typer.Exit(1)

    with Session(settings) as session:
        presentation = PresentationLoop(session, registry=PanelRegistry(settings.honor_close))
        future = session.run_script(source)
        result = future.result()
        presentation.tick()

    for panel in presentation.registry:
        console.rule(f"[bold magenta]{panel.name} #{panel.panel_id}[/bold magenta]")
        console.print(panel.text, markup=False, highlight=False)
    if not result.success:
        err_console.print(f"[red]Script failed: {result.error}[/red]")
        raise typer.Exit(1)


@app.command("upload")
def upload(
    port: str = PortArg,
    firmware: Path = typer.Argument(..., exists=True, dir_okay=False, help="Firmware image"),
    baud: int = BaudOpt,
    parity: Parity = ParityOpt,
    stop_bits: StopBits = StopBitsOpt,
    pad_byte: int = typer.Option(
        None,
        "--pad-byte",
        min=0,
        max=255,
        help="Pad and send a final partial block with this byte instead of dropping it",
    ),
    log_level: str = LogLevelOpt,
    log_file: Path = LogFileOpt,
) -> None:
    """Stream a firmware image to the device in fixed-size blocks."""
    settings = _settings(log_level, log_file)
    configure_logging(settings, err_console)
    config = LinkConfig(
        port=port,
        baud_rate=baud,
        parity=parity,
        stop_bits=stop_bits,
        read_timeout_ms=settings.read_timeout_ms,
    )

    with Session(settings) as session:
        _connect(session, config)
        future = session.upload_firmware(firmware, pad_byte=pad_byte)
        if future is None:
            err_console.print("[red]Upload could not be started[/red]")
            raise typer.Exit(1)
        result = future.result()

    console.print(
        f"[green]Sent {result.blocks_sent} blocks ({result.bytes_sent} bytes)[/green]"
    )
    if result.bytes_dropped:
        console.print(
            f"[yellow]Dropped final partial block of {result.bytes_dropped} bytes "
            f"(use --pad-byte to send it)[/yellow]"
        )


@app.command("send")
def send(
    port: str = PortArg,
    text: str = typer.Argument(..., help="Text to transmit"),
    baud: int = BaudOpt,
    parity: Parity = ParityOpt,
    stop_bits: StopBits = StopBitsOpt,
    newline: bool = typer.Option(False, "--newline", "-n", help="Append CR LF"),
    listen: float = typer.Option(
        0.0, "--listen", "-l", help="Seconds to wait and print what the device sends back"
    ),
    log_level: str = LogLevelOpt,
    log_file: Path = LogFileOpt,
) -> None:
    """Transmit one line of text and optionally print the reply."""
    settings = _settings(log_level, log_file)
    configure_logging(settings, err_console)
    config = LinkConfig(
        port=port,
        baud_rate=baud,
        parity=parity,
        stop_bits=stop_bits,
        read_timeout_ms=settings.read_timeout_ms,
    )
    data = text.encode("utf-8") + (b"\r\n" if newline else b"")

    with Session(settings) as session:
        _connect(session, config)
        future = session.send(data)
        if future is not None:
            future.result()
        if listen > 0:
            time.sleep(listen)
            console.print(session.buffer.get_text(), markup=False, highlight=False)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
