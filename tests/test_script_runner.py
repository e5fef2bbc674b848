"""Tests for the script host and runner."""

import pytest

from uart_debug.panels.events import PanelAppended, PanelCreated
from uart_debug.panels.registry import PanelRegistry
from uart_debug.scripts.host import HostCapabilities
from uart_debug.scripts.runner import ScriptRunner, ScriptSource


@pytest.fixture
def host(channel, allocator):
    return HostCapabilities(channel, allocator)


@pytest.fixture
def runner(host):
    return ScriptRunner(host, timeout=5.0)


class TestHostCapabilities:
    """Tests for the two host functions."""

    def test_new_window_publishes_created(self, host, channel):
        assert host.new_window("log") == 0
        assert channel.drain() == [PanelCreated(0, "log")]

    def test_write_wnd_publishes_appended(self, host, channel):
        host.write_wnd(7, "text")
        assert channel.drain() == [PanelAppended(7, "text")]

    def test_bindings_expose_exactly_two_names(self, host):
        assert set(host.bindings()) == {"new_window", "write_wnd"}

    @pytest.mark.parametrize(
        "call",
        [
            lambda h: h.new_window(5),
            lambda h: h.write_wnd("0", "text"),
            lambda h: h.write_wnd(True, "text"),
            lambda h: h.write_wnd(0, b"bytes"),
        ],
    )
    def test_wrong_argument_types_raise(self, host, channel, call):
        with pytest.raises(TypeError):
            call(host)
        assert channel.drain() == []


class TestScriptRunner:
    """Tests for ScriptRunner.run()."""

    def test_hello_world(self, runner, channel):
        """The one-line example produces one panel with the joined text."""
        source = ScriptSource(
            "hello.py",
            'id = new_window("log"); write_wnd(id, "hello "); write_wnd(id, "world")',
        )

        result = runner.run(source)

        assert result.success
        assert result.error is None
        registry = PanelRegistry()
        registry.apply_all(channel.drain())
        assert len(registry) == 1
        panel = registry.get(0)
        assert panel.name == "log"
        assert panel.text == "hello world"

    def test_runtime_error_keeps_earlier_effects(self, runner, channel):
        """Events published before the failure stay published."""
        source = ScriptSource("boom.py", 'id = new_window("log")\nwrite_wnd(id, "a")\n1 / 0\n')

        result = runner.run(source)

        assert not result.success
        assert not result.timeout
        assert result.error == "line 3: ZeroDivisionError: division by zero"
        assert channel.drain() == [PanelCreated(0, "log"), PanelAppended(0, "a")]

    def test_syntax_error_publishes_nothing(self, runner, channel):
        result = runner.run(ScriptSource("bad.py", "new_window(\n"))
        assert not result.success
        assert "SyntaxError" in result.error
        assert channel.drain() == []

    def test_null_bytes_are_a_script_error(self, runner, channel):
        result = runner.run(ScriptSource("nul.py", "x = 1\x00\n"))
        assert not result.success
        assert "null bytes" in result.error
        assert channel.drain() == []

    def test_host_type_error_is_a_script_error(self, runner):
        result = runner.run(ScriptSource("types.py", "new_window(42)"))
        assert not result.success
        assert "TypeError" in result.error
        assert result.error.startswith("line 1:")

    def test_only_host_functions_are_bound(self, runner):
        """Nothing from the runner's own module leaks into the namespace."""
        result = runner.run(ScriptSource("leak.py", "ScriptRunner"))
        assert not result.success
        assert "NameError" in result.error

    def test_timeout_interrupts_busy_loop(self, host):
        """A loop catching Exception is still stopped at the deadline."""
        runner = ScriptRunner(host, timeout=0.2)
        source = ScriptSource(
            "spin.py",
            "while True:\n    try:\n        x = 1\n    except Exception:\n        pass\n",
        )

        result = runner.run(source)

        assert not result.success
        assert result.timeout
        assert result.error == "timed out after 0.2s"
        assert result.duration < 5.0

    def test_no_timeout(self, host):
        runner = ScriptRunner(host, timeout=None)
        assert runner.run(ScriptSource("ok.py", "x = sum(range(1000))")).success

    def test_from_path(self, tmp_path):
        script = tmp_path / "probe.py"
        script.write_text('new_window("probe")\n', encoding="utf-8")
        source = ScriptSource.from_path(script)
        assert source.name == str(script)
        assert source.text == 'new_window("probe")\n'
