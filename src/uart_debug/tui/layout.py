"""
Layout and panel factories for the debugger TUI.

Layout structure:
+----------------------------------------------------------------+
|  Status (port, link state, mode, counters)         (3 rows)    |
+---------------------+---------------------+--------------------+
|  Receive (ASCII)    |  Receive (hex)      |  Script panels     |
|  ratio=2            |  ratio=2            |  ratio=2, stacked  |
+---------------------+---------------------+--------------------+
|  Input line / key hints                            (3 rows)    |
+----------------------------------------------------------------+

Device data and script text are wrapped in rich.text.Text so bracketed
bytes are never parsed as console markup.
"""

from rich.layout import Layout
from rich.panel import Panel
from rich.text import Text

from uart_debug.panels.events import Panel as ScriptPanel

HEX_BYTES_PER_LINE = 8


def create_layout() -> Layout:
    """
    Create the TUI layout structure.

    Access regions via:
    - layout["status"]
    - layout["body"]["ascii"]
    - layout["body"]["hex"]
    - layout["body"]["panels"]
    - layout["input"]

    Returns:
        Layout with named regions
    """
    layout = Layout(name="root")
    layout.split_column(
        Layout(name="status", size=3),
        Layout(name="body"),
        Layout(name="input", size=3),
    )
    layout["body"].split_row(
        Layout(name="ascii", ratio=2),
        Layout(name="hex", ratio=2),
        Layout(name="panels", ratio=2),
    )
    return layout


def make_panel(content: str | Text, title: str, style: str = "blue") -> Panel:
    """
    Create a styled panel.

    Plain strings are taken literally, never as markup.

    Args:
        content: Panel body
        title: Panel title (will be bolded)
        style: Border style color (default "blue")
    """
    body = content if isinstance(content, Text) else Text(content)
    return Panel(
        body,
        title=f"[bold]{title}[/bold]",
        border_style=style,
        padding=(0, 1),
    )


def tail_lines(text: str, n: int) -> str:
    """Return the last n lines of text."""
    if n <= 0:
        return ""
    return "\n".join(text.splitlines()[-n:])


def format_hex(data: bytes, width: int = HEX_BYTES_PER_LINE) -> str:
    """
    Hex dump with an ASCII column.

    Each line shows `width` bytes as "XX " padded to width*3 columns,
    two spaces, then the bytes as printable ASCII or ".".

    Example:
        format_hex(b"ping\\r\\n")
        # "70 69 6E 67 0D 0A         ping..\\n"
    """
    lines = []
    for offset in range(0, len(data), width):
        chunk = data[offset : offset + width]
        hex_part = "".join(f"{b:02X} " for b in chunk)
        ascii_part = "".join(chr(b) if 0x21 <= b <= 0x7E else "." for b in chunk)
        lines.append(f"{hex_part:<{width * 3}}  {ascii_part}\n")
    return "".join(lines)


def make_status_panel(
    link: str,
    state: str,
    mode: str,
    panel_count: int,
    dropped_events: int,
    pending_tasks: int,
    lost_reason: str | None = None,
    message: str = "",
) -> Panel:
    """
    Create the status header with a state-colored border.

    Border colors:
    - connected: green
    - lost: bold red, with the error text
    - disconnected: yellow
    """
    if state == "connected":
        border_style = "green"
    elif state == "lost":
        border_style = "bold red"
    else:
        border_style = "yellow"

    status = Text()
    status.append(link or "<no port>", style="bold")
    status.append("  ")
    status.append(state.upper(), style=border_style)
    if lost_reason:
        status.append(f" ({lost_reason})", style="red")
    status.append(f"  mode={mode}  panels={panel_count}")
    status.append(f"  tasks={pending_tasks}")
    if dropped_events:
        status.append(f"  dropped={dropped_events}", style="yellow")
    if message:
        status.append(f"  {message}", style="dim")

    return Panel(
        status,
        title="[bold]UART Debug[/bold]",
        border_style=border_style,
        padding=(0, 1),
    )


def make_panels_view(panels: list[ScriptPanel], max_lines: int = 20) -> Layout | Panel:
    """
    Stack every live script panel vertically.

    Args:
        panels: Live panels in creation order
        max_lines: Lines of text shown per panel (tail)

    Returns:
        A placeholder panel when there are none, else a column layout
    """
    if not panels:
        return make_panel("No script panels", "Panels", "magenta")
    column = Layout(name="panel-stack")
    column.split_column(
        *(
            Layout(
                make_panel(
                    tail_lines(panel.text, max_lines),
                    f"{panel.name} #{panel.panel_id}",
                    "magenta",
                ),
                name=f"panel-{panel.panel_id}",
            )
            for panel in panels
        )
    )
    return column
