"""
Serial device access.

Public exports:
    DeviceLink: Lock-guarded serial handle shared by reader and writers
    ReceiveBuffer: Lock-guarded accumulator for received bytes
    ReaderLoop: Background thread draining a link into a buffer
    ReaderState: ReaderLoop lifecycle states
    UploadResult: Outcome of a firmware upload
    upload_firmware: Block-by-block firmware transfer
    list_ports: Available serial ports
"""

from serial.tools import list_ports as _list_ports

from uart_debug.device.buffer import ReceiveBuffer
from uart_debug.device.firmware import UploadResult, upload_firmware
from uart_debug.device.link import DeviceLink
from uart_debug.device.reader import ReaderLoop, ReaderState


def list_ports() -> list[tuple[str, str]]:
    """Return (device, description) for every serial port the OS reports."""
    return [(p.device, p.description) for p in sorted(_list_ports.comports())]


__all__ = [
    "DeviceLink",
    "ReaderLoop",
    "ReaderState",
    "ReceiveBuffer",
    "UploadResult",
    "list_ports",
    "upload_firmware",
]
