"""Unit tests for the CLI — Typer command registration and behavior."""

from __future__ import annotations

from typer.testing import CliRunner

from glasstrace.cli.app import app
from glasstrace.models.events import EventKind
from glasstrace.sinks.file import FileSink

runner = CliRunner()

SCRIPT = """
import sys

def greet(name):
    return "hello " + name

if __name__ == "__main__":
    greet(sys.argv[1] if len(sys.argv) > 1 else "world")
"""

FAILING_CALLBACK = """
def produce():
    raise RuntimeError("callback broke")
"""


class TestCliApp:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("run", "plan", "sinks"):
            assert command in result.output

    def test_sinks_command(self):
        result = runner.invoke(app, ["sinks"])
        assert result.exit_code == 0
        for name in ("raw_console", "file", "memory"):
            assert name in result.output


class TestPlanCommand:
    def test_default_scope_added(self):
        result = runner.invoke(app, ["plan", "-p", "json"])
        assert result.exit_code == 0
        assert "processes" in result.output
        assert "json" in result.output

    def test_wildcard_added_for_scope_only(self):
        result = runner.invoke(app, ["plan", "-s", "new_processes"])
        assert result.exit_code == 0
        assert "every module" in result.output
        assert "new_processes" in result.output

    def test_malformed_callback(self):
        result = runner.invoke(app, ["plan", "-c", "no_function_here"])
        assert result.exit_code != 0

    def test_failing_callback_module(self):
        result = runner.invoke(app, ["plan", "-c", "glasstrace_no_such_module:f"])
        assert result.exit_code == 1
        assert "Callback failed" in result.output

    def test_callback_raising_runtime_error(self, tmp_path, monkeypatch):
        (tmp_path / "gt_cb_raises.py").write_text(FAILING_CALLBACK)
        monkeypatch.syspath_prepend(str(tmp_path))
        result = runner.invoke(app, ["plan", "-c", "gt_cb_raises:produce"])
        assert result.exit_code == 1
        assert "Callback failed" in result.output
        assert "callback broke" in result.output


class TestRunCommand:
    def test_run_writes_call_events(self, tmp_path):
        script = tmp_path / "hello.py"
        script.write_text(SCRIPT)
        out = tmp_path / "events.jsonl"

        result = runner.invoke(
            app,
            [
                "run", str(script),
                "-p", "__main__",
                "--sink", "file",
                "--out", str(out),
                "--pool-size", "1",
                "--pool-id", "cli-test",
                "alice",
            ],
        )
        assert result.exit_code == 0, result.output

        events = FileSink.read_events(tmp_path / "events.jsonl.0")
        greets = [e for e in events if e.kind is EventKind.CALL and e.function == "greet"]
        assert len(greets) == 1
        assert greets[0].arity == 1

    def test_run_rejects_bad_pool_size(self, tmp_path):
        script = tmp_path / "noop.py"
        script.write_text("pass\n")
        result = runner.invoke(app, ["run", str(script), "--pool-size", "0"])
        assert result.exit_code == 1
        assert "Cannot start tracing" in result.output

    def test_run_rejects_unknown_sink(self, tmp_path):
        script = tmp_path / "noop.py"
        script.write_text("pass\n")
        result = runner.invoke(app, ["run", str(script), "--sink", "carrier-pigeon"])
        assert result.exit_code == 1

    def test_run_missing_script(self, tmp_path):
        result = runner.invoke(app, ["run", str(tmp_path / "missing.py")])
        assert result.exit_code != 0

    def test_run_failing_callback_stops_pool(self, tmp_path):
        from glasstrace.pool.supervisor import supervisor

        script = tmp_path / "noop.py"
        script.write_text("pass\n")
        result = runner.invoke(
            app,
            [
                "run", str(script),
                "-c", "glasstrace_no_such_module:f",
                "--sink", "memory",
                "--pool-size", "1",
                "--pool-id", "cli-failing",
            ],
        )
        assert result.exit_code == 1
        assert "Cannot start tracing" in result.output
        assert supervisor.get("cli-failing") is None

    def test_run_callback_raising_stops_pool(self, tmp_path, monkeypatch):
        from glasstrace.pool.supervisor import supervisor

        (tmp_path / "gt_cb_raises_run.py").write_text(FAILING_CALLBACK)
        monkeypatch.syspath_prepend(str(tmp_path))
        script = tmp_path / "noop.py"
        script.write_text("pass\n")
        result = runner.invoke(
            app,
            [
                "run", str(script),
                "-c", "gt_cb_raises_run:produce",
                "--sink", "memory",
                "--pool-size", "1",
                "--pool-id", "cli-raising",
            ],
        )
        assert result.exit_code == 1
        assert "callback broke" in result.output
        assert supervisor.get("cli-raising") is None
