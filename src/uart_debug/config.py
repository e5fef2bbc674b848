"""
Configuration for the serial debugger.

Two layers:
- LinkConfig: connection parameters for one DeviceLink, validated and
  frozen at construction. Immutable for the lifetime of the link.
- Settings: process-wide tuning knobs, overridable via environment
  variables with the UART_DEBUG_ prefix. For example:
      UART_DEBUG_SCRIPT_TIMEOUT_S=5
      UART_DEBUG_CHANNEL_OVERFLOW=block

Example:
    ```python
    from uart_debug.config import LinkConfig, Parity

    config = LinkConfig(port="/dev/ttyUSB0", baud_rate=9600, parity=Parity.EVEN)
    config.to_serial_kwargs()
    # {"baudrate": 9600, "parity": "E", "stopbits": 1, "timeout": 0.1}
    ```
"""

from enum import Enum
from pathlib import Path

import serial
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

MIN_BAUD_RATE = 1_200
MAX_BAUD_RATE = 921_600
DEFAULT_BAUD_RATE = 115_200


class Parity(str, Enum):
    """Parity setting for the serial line."""

    NONE = "none"
    EVEN = "even"
    ODD = "odd"

    def to_serial(self) -> str:
        """Return the matching pyserial PARITY_* constant."""
        return {
            Parity.NONE: serial.PARITY_NONE,
            Parity.EVEN: serial.PARITY_EVEN,
            Parity.ODD: serial.PARITY_ODD,
        }[self]


class StopBits(str, Enum):
    """Stop bits setting for the serial line."""

    ONE = "1"
    TWO = "2"

    def to_serial(self) -> float:
        """Return the matching pyserial STOPBITS_* constant."""
        return {
            StopBits.ONE: serial.STOPBITS_ONE,
            StopBits.TWO: serial.STOPBITS_TWO,
        }[self]


class OverflowPolicy(str, Enum):
    """What the panel event channel does when it is full."""

    DROP_OLDEST = "drop_oldest"
    BLOCK = "block"


class LinkConfig(BaseModel):
    """
    Connection parameters for a DeviceLink.

    Attributes:
        port: Device path or pyserial URL (e.g. "/dev/ttyUSB0", "COM3", "loop://")
        baud_rate: Line speed, 1200..921600 inclusive
        parity: Parity bit setting
        stop_bits: Number of stop bits
        read_timeout_ms: Upper bound on a single read call
    """

    model_config = {"frozen": True}

    port: str = Field(min_length=1)
    baud_rate: int = Field(DEFAULT_BAUD_RATE, ge=MIN_BAUD_RATE, le=MAX_BAUD_RATE)
    parity: Parity = Parity.NONE
    stop_bits: StopBits = StopBits.ONE
    read_timeout_ms: int = Field(100, gt=0)

    def to_serial_kwargs(self) -> dict:
        """Keyword arguments for serial.serial_for_url()."""
        return {
            "baudrate": self.baud_rate,
            "parity": self.parity.to_serial(),
            "stopbits": self.stop_bits.to_serial(),
            "timeout": self.read_timeout_ms / 1000.0,
        }

    def describe(self) -> str:
        """Short human-readable summary for status lines."""
        parity = self.parity.value[0].upper()
        return f"{self.port} {self.baud_rate} 8{parity}{self.stop_bits.value}"


class Settings(BaseSettings):
    """Serial debugger configuration.

    All settings can be overridden via environment variables with
    UART_DEBUG_ prefix.
    """

    # Device I/O
    read_timeout_ms: int = 100
    reader_backoff_ms: int = 10
    read_chunk_size: int = 128

    # Presentation
    refresh_interval_ms: int = 100
    max_events_per_tick: int | None = None
    honor_close: bool = True

    # Background work
    max_workers: int = 8
    max_pending_tasks: int = 64
    write_workers: int = 2
    max_pending_writes: int = 256
    script_timeout_s: float | None = 60.0

    # Panel event channel
    channel_capacity: int = 10_000
    channel_overflow: OverflowPolicy = OverflowPolicy.DROP_OLDEST
    channel_block_timeout_s: float = 1.0

    # Firmware upload
    firmware_block_size: int = 512
    firmware_block_delay_ms: int = 10

    # Logging
    log_level: str = "WARNING"
    log_file: Path | None = None

    model_config = {"env_prefix": "UART_DEBUG_"}
