"""Tests for link configuration and settings."""

import pytest
import serial
from pydantic import ValidationError

from uart_debug.config import LinkConfig, OverflowPolicy, Parity, Settings, StopBits


class TestLinkConfig:
    """Tests for LinkConfig validation and conversion."""

    def test_defaults(self):
        """Defaults are 115200 8N1 with a 100ms read timeout."""
        config = LinkConfig(port="/dev/ttyUSB0")
        assert config.baud_rate == 115_200
        assert config.parity is Parity.NONE
        assert config.stop_bits is StopBits.ONE
        assert config.read_timeout_ms == 100

    @pytest.mark.parametrize("baud", [1_199, 921_601, 0])
    def test_rejects_out_of_range_baud(self, baud):
        """Baud rates outside 1200..921600 are rejected."""
        with pytest.raises(ValidationError):
            LinkConfig(port="/dev/ttyUSB0", baud_rate=baud)

    @pytest.mark.parametrize("baud", [1_200, 921_600])
    def test_accepts_baud_bounds(self, baud):
        """Both range bounds are inclusive."""
        assert LinkConfig(port="COM3", baud_rate=baud).baud_rate == baud

    def test_rejects_empty_port(self):
        """A port identifier is required."""
        with pytest.raises(ValidationError):
            LinkConfig(port="")

    def test_is_immutable(self):
        """Configuration cannot change after construction."""
        config = LinkConfig(port="COM3")
        with pytest.raises(ValidationError):
            config.baud_rate = 9600

    def test_serial_kwargs(self):
        """Conversion uses pyserial constants and seconds for the timeout."""
        config = LinkConfig(
            port="COM3",
            baud_rate=9600,
            parity=Parity.EVEN,
            stop_bits=StopBits.TWO,
            read_timeout_ms=250,
        )
        assert config.to_serial_kwargs() == {
            "baudrate": 9600,
            "parity": serial.PARITY_EVEN,
            "stopbits": serial.STOPBITS_TWO,
            "timeout": 0.25,
        }

    def test_describe(self):
        """Status summary uses the usual 8N1 notation."""
        config = LinkConfig(port="COM3", baud_rate=9600, parity=Parity.ODD)
        assert config.describe() == "COM3 9600 8O1"


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        """Defaults match the documented values."""
        settings = Settings()
        assert settings.reader_backoff_ms == 10
        assert settings.refresh_interval_ms == 100
        assert settings.firmware_block_size == 512
        assert settings.channel_overflow is OverflowPolicy.DROP_OLDEST
        assert settings.honor_close is True

    def test_env_override(self, monkeypatch):
        """UART_DEBUG_ environment variables override defaults."""
        monkeypatch.setenv("UART_DEBUG_SCRIPT_TIMEOUT_S", "2.5")
        monkeypatch.setenv("UART_DEBUG_CHANNEL_OVERFLOW", "block")
        monkeypatch.setenv("UART_DEBUG_HONOR_CLOSE", "false")
        settings = Settings()
        assert settings.script_timeout_s == 2.5
        assert settings.channel_overflow is OverflowPolicy.BLOCK
        assert settings.honor_close is False
