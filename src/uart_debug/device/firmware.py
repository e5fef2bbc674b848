"""
Block-by-block firmware transfer over a DeviceLink.

The image is read in fixed-size blocks. Every full block is written in
order with a fixed delay between blocks. A trailing partial block is
dropped unless a pad byte is given, in which case it is padded to the
block size and sent. There is no acknowledgment, retry or checksum.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from uart_debug.device.link import DeviceLink

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_SIZE = 512
DEFAULT_BLOCK_DELAY = 0.01


@dataclass
class UploadResult:
    """Outcome of a firmware upload.

    Attributes:
        blocks_sent: Number of blocks written to the link
        bytes_sent: Total bytes written, padding included
        bytes_dropped: Bytes of a final partial block that were not sent
    """

    blocks_sent: int = 0
    bytes_sent: int = 0
    bytes_dropped: int = 0


def upload_firmware(
    link: DeviceLink,
    path: Path,
    block_size: int = DEFAULT_BLOCK_SIZE,
    delay: float = DEFAULT_BLOCK_DELAY,
    pad_byte: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> UploadResult:
    """
    Stream a file to the device in fixed-size blocks.

    Args:
        link: Open link to write to
        path: Firmware image
        block_size: Bytes per block
        delay: Seconds to wait after each block
        pad_byte: If set, pad a final partial block with this byte and send it
        sleep: Delay function (injectable for tests)

    Returns:
        UploadResult with block and byte counts

    Raises:
        OSError: If the file cannot be read
        LinkIOError: If a block write fails; the upload stops there
    """
    result = UploadResult()
    logger.info("Uploading %s in %d-byte blocks", path, block_size)
    with open(path, "rb") as f:
        while True:
            block = f.read(block_size)
            if not block:
                break
            if len(block) < block_size:
                if pad_byte is None:
                    result.bytes_dropped = len(block)
                    logger.info("Dropped final partial block (%d bytes)", len(block))
                    break
                block = block.ljust(block_size, bytes([pad_byte]))
            link.write(block)
            result.blocks_sent += 1
            result.bytes_sent += len(block)
            sleep(delay)
    logger.info("Upload finished: %d blocks, %d bytes", result.blocks_sent, result.bytes_sent)
    return result
