"""Tests for Session connection handling and task launching."""

import threading
import time

import pytest
import serial

from uart_debug.config import LinkConfig
from uart_debug.device.link import DeviceLink
from uart_debug.exceptions import OpenError
from uart_debug.panels.registry import PanelRegistry
from uart_debug.scripts.runner import ScriptSource
from uart_debug.session import LinkState, Session

from conftest import FakeSerial, wait_until


class TestConnect:
    """Tests for connect/disconnect."""

    def test_loopback_ping_echo(self, settings):
        """Sending "ping" over loop:// lands in the receive buffer."""
        with Session(settings) as session:
            session.connect(LinkConfig(port="loop://"))
            session.send(b"ping").result(timeout=2.0)
            assert wait_until(lambda: session.buffer.get_text() == "ping")

    def test_connect_starts_reader(self, fake_session, fake_serial, link_config):
        fake_session.connect(link_config)
        assert fake_session.state is LinkState.CONNECTED
        fake_serial.feed(b"boot ok\r\n")
        assert wait_until(lambda: fake_session.buffer.get_text() == "boot ok\r\n")

    def test_disconnect_stops_reader_and_closes(self, fake_session, fake_serial, link_config):
        fake_session.connect(link_config)
        reader = fake_session.reader
        fake_session.disconnect()
        assert fake_session.state is LinkState.DISCONNECTED
        assert not reader.running
        assert fake_serial.closed

    def test_disconnect_when_not_connected(self, fake_session):
        fake_session.disconnect()
        assert fake_session.state is LinkState.DISCONNECTED

    def test_reconnect_replaces_old_reader(self, settings, link_config):
        """The previous reader is stopped before the new link starts."""
        fakes = []

        def opener(config):
            fakes.append(FakeSerial())
            return DeviceLink(fakes[-1], config)

        with Session(settings, opener=opener) as session:
            session.connect(link_config)
            first_reader = session.reader
            session.connect(link_config)

            assert not first_reader.running
            assert fakes[0].closed
            assert not fakes[1].closed
            assert session.reader is not first_reader
            assert session.reader.running

    def test_open_error_leaves_session_disconnected(self, settings):
        with Session(settings) as session:
            with pytest.raises(OpenError):
                session.connect(LinkConfig(port="/dev/uart-debug-does-not-exist"))
            assert session.state is LinkState.DISCONNECTED
            assert session.send(b"x") is None

    def test_reader_failure_marks_link_lost(self, fake_session, fake_serial, link_config):
        fake_session.connect(link_config)
        fake_serial.read_error = serial.SerialException("device disconnected")

        assert wait_until(lambda: fake_session.state is LinkState.LOST)
        assert "device disconnected" in fake_session.lost_reason
        assert fake_session.send(b"x") is None

    def test_reconnect_after_loss_clears_reason(self, settings, link_config):
        fakes = []

        def opener(config):
            fakes.append(FakeSerial())
            return DeviceLink(fakes[-1], config)

        with Session(settings, opener=opener) as session:
            session.connect(link_config)
            fakes[0].read_error = serial.SerialException("gone")
            assert wait_until(lambda: session.state is LinkState.LOST)

            session.connect(link_config)
            assert session.state is LinkState.CONNECTED
            assert session.lost_reason is None


class TestTasks:
    """Tests for send, scripts and uploads."""

    def test_send_when_disconnected_returns_none(self, fake_session):
        assert fake_session.send(b"hello") is None

    def test_send_writes_payload(self, fake_session, fake_serial, link_config):
        fake_session.connect(link_config)
        fake_session.send(b"AT\r\n").result(timeout=2.0)
        assert fake_serial.written == [b"AT\r\n"]

    def test_write_failure_is_dropped(self, fake_session, fake_serial, link_config):
        """A failed write does not propagate to the caller."""
        fake_session.connect(link_config)
        fake_serial.write_error = OSError(5, "Input/output error")
        assert fake_session.send(b"x").result(timeout=2.0) is None

    def test_concurrent_sends_stay_intact(self, fake_session, fake_serial, link_config):
        fake_session.connect(link_config)
        payloads = [f"<{i:02d}>".encode() for i in range(32)]
        futures = [fake_session.send(p) for p in payloads]
        for future in futures:
            future.result(timeout=2.0)
        assert sorted(fake_serial.written) == sorted(payloads)

    def test_run_script_without_device(self, fake_session):
        """Scripts do not need a connection."""
        source = ScriptSource("probe.py", 'write_wnd(new_window("probe"), "ok")')
        result = fake_session.run_script(source).result(timeout=5.0)

        assert result.success
        registry = PanelRegistry()
        registry.apply_all(fake_session.channel.drain())
        assert registry.get(0).text == "ok"

    def test_concurrent_scripts_get_unique_ids(self, fake_session):
        """Each script's panel id is unique and its own text stays ordered."""
        text = (
            "pid = new_window('worker')\n"
            "for i in range(50):\n"
            "    write_wnd(pid, str(i) + ',')\n"
        )
        futures = [fake_session.run_script(ScriptSource(f"s{n}.py", text)) for n in range(6)]
        assert all(f.result(timeout=10.0).success for f in futures)

        registry = PanelRegistry()
        registry.apply_all(fake_session.channel.drain())
        expected = "".join(f"{i}," for i in range(50))
        assert sorted(p.panel_id for p in registry) == list(range(6))
        assert all(p.text == expected for p in registry)

    def test_upload_firmware(self, fake_session, fake_serial, link_config, tmp_path):
        image = tmp_path / "fw.bin"
        image.write_bytes(bytes(range(256)) * 5)
        fake_session.connect(link_config)

        result = fake_session.upload_firmware(image).result(timeout=5.0)

        assert result.blocks_sent == 2
        assert result.bytes_dropped == 256
        assert fake_serial.written == [bytes(range(256)) * 2, bytes(range(256)) * 2]

    def test_upload_when_disconnected_returns_none(self, fake_session, tmp_path):
        image = tmp_path / "fw.bin"
        image.write_bytes(b"\x00" * 512)
        assert fake_session.upload_firmware(image) is None

    def test_send_not_delayed_by_running_scripts(self, settings, fake_serial, link_config):
        """Writes go out while every script worker is busy."""
        settings.max_workers = 2
        settings.max_pending_tasks = 2
        session = Session(settings, opener=lambda config: DeviceLink(fake_serial, config))
        try:
            session.connect(link_config)
            sleeper = ScriptSource("sleep.py", "import time\ntime.sleep(1.5)\n")
            scripts = [session.run_script(sleeper) for _ in range(2)]
            assert all(f is not None for f in scripts)

            assert session.send(b"ping") is not None
            assert wait_until(lambda: fake_serial.written == [b"ping"], timeout=1.0)
            assert not any(f.done() for f in scripts)
        finally:
            session.close(wait=True)

    def test_saturated_pool_rejects_work(self, settings):
        settings.max_workers = 1
        settings.max_pending_tasks = 1
        gate = threading.Event()
        with Session(settings) as session:
            session._runner.run = lambda source: gate.wait(5.0)
            first = session.run_script(ScriptSource("a.py", ""))
            try:
                assert first is not None
                assert session.run_script(ScriptSource("b.py", "")) is None
                assert session.pending_tasks == 1
            finally:
                gate.set()
            first.result(timeout=2.0)
            assert wait_until(lambda: session.pending_tasks == 0)

    def test_clear_receive_buffer(self, fake_session, fake_serial, link_config):
        fake_session.connect(link_config)
        fake_serial.feed(b"old")
        assert wait_until(lambda: len(fake_session.buffer) == 3)
        fake_session.clear_receive_buffer()
        time.sleep(0.01)
        assert fake_session.buffer.get_text() == ""
