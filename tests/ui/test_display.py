"""Tests for display implementations and environment detection."""

import os
import sys
import threading
from unittest.mock import patch

from rich.console import Console

from ralph_view.config import ViewConfig
from ralph_view.engine import (
    TaskRef,
    engine_paused_event,
    iteration_started_event,
    task_completed_event,
    task_selected_event,
)
from ralph_view.ui import (
    CI_ENV_VARS,
    PlaintextDisplay,
    RunDisplay,
    create_display,
    is_interactive,
)


class TestIsInteractive:
    """Tests for is_interactive() detection."""

    def test_returns_false_when_plain_output_flag_set(self):
        """RALPH_PLAIN_OUTPUT should force non-interactive."""
        with patch.dict(os.environ, {"RALPH_PLAIN_OUTPUT": "1"}):
            assert is_interactive() is False

    def test_returns_false_when_no_color_set(self):
        """NO_COLOR standard should trigger non-interactive."""
        with patch.dict(os.environ, {"NO_COLOR": "1"}):
            assert is_interactive() is False

    def test_returns_false_in_ci(self):
        """CI environment variables should trigger non-interactive mode."""
        with patch.dict(os.environ, {"GITHUB_ACTIONS": "true"}):
            assert is_interactive() is False

    def test_returns_false_when_stdout_not_tty(self):
        """Non-TTY stdout should trigger non-interactive."""
        with patch.object(sys.stdout, "isatty", return_value=False):
            assert is_interactive() is False

    def test_returns_false_when_config_requests_plain_output(self):
        """The plain_output setting forces non-interactive."""
        assert is_interactive(ViewConfig(plain_output=True)) is False

    def test_returns_true_on_terminal(self):
        """A terminal outside CI gets the live view."""
        clean_env = {k: v for k, v in os.environ.items() if k not in CI_ENV_VARS}
        with patch.dict(os.environ, clean_env, clear=True):
            with patch.object(sys.stdout, "isatty", return_value=True):
                assert is_interactive(ViewConfig()) is True


class TestCreateDisplay:
    """Tests for create_display() factory function."""

    def test_creates_plaintext_when_not_interactive(self, projector):
        """Should return PlaintextDisplay when interactive=False."""
        assert isinstance(create_display(projector, interactive=False), PlaintextDisplay)

    def test_creates_run_display_when_interactive(self, projector):
        """Should return RunDisplay when interactive=True."""
        assert isinstance(create_display(projector, interactive=True), RunDisplay)


class TestPlaintextDisplay:
    """Tests for PlaintextDisplay."""

    def test_lifecycle_and_changes(self, engine, projector, view_config, capsys):
        """Status, iteration and task changes are printed as lines."""
        display = PlaintextDisplay(projector, config=view_config)
        with display.start():
            engine.emit(task_selected_event(TaskRef(id="T-1", title="Login"), 1))
            engine.emit(iteration_started_event(1, TaskRef(id="T-1", title="Login")))
            engine.emit(task_completed_event(TaskRef(id="T-1", title="Login")))
            engine.emit(engine_paused_event())
            projector.tick()

        out = capsys.readouterr().out
        assert "Starting run: Ralph" in out
        assert "Iteration 1 (T-1: Login)" in out
        assert "Task T-1: active" in out
        assert "Task T-1: done" in out
        assert "Status: PAUSED" in out
        assert "Run finished in" in out

    def test_unsubscribes_on_exit(self, engine, projector, view_config, capsys):
        """Nothing is printed after the context exits."""
        display = PlaintextDisplay(projector, config=view_config)
        with display.start():
            pass
        capsys.readouterr()
        engine.emit(engine_paused_event())
        assert capsys.readouterr().out == ""

    def test_show_iteration(self, projector, view_config, make_result, capsys):
        """Iteration summaries include status and duration."""
        display = PlaintextDisplay(projector, config=view_config)
        display.show_iteration(make_result(), total_iterations=5)
        assert "Iteration 3 of 5: T-1 completed in 2m 5s" in capsys.readouterr().out

    def test_show_iteration_with_plain_status(self, projector, view_config, make_result, capsys):
        """Records built from plain status strings are summarized too."""
        display = PlaintextDisplay(projector, config=view_config)
        display.show_iteration(make_result(status="failed"), total_iterations=5)
        assert "Iteration 3 of 5: T-1 failed in 2m 5s" in capsys.readouterr().out

    def test_concurrent_updates_print_final_status_last(
        self, engine, projector, view_config, capsys
    ):
        """A status change racing a clock tick is never followed by a stale status line."""
        entered = threading.Event()
        release = threading.Event()

        def hold_first_delivery(snapshot):
            if not entered.is_set():
                entered.set()
                release.wait(timeout=2.0)

        display = PlaintextDisplay(projector, config=view_config)
        projector.subscribe(hold_first_delivery)
        with display.start():
            clock = threading.Thread(target=projector.tick)
            clock.start()
            assert entered.wait(timeout=2.0)
            engine_thread = threading.Thread(target=engine.emit, args=(engine_paused_event(),))
            engine_thread.start()
            engine_thread.join(timeout=0.1)
            release.set()
            clock.join(timeout=2.0)
            engine_thread.join(timeout=2.0)

        status_lines = [line for line in capsys.readouterr().out.splitlines() if "Status:" in line]
        assert status_lines[-1].endswith("Status: PAUSED")
        assert len(status_lines) == 2


class TestRunDisplay:
    """Tests for RunDisplay outside a live region."""

    def test_render_uses_engine_status(self, engine, projector, view_config):
        """The rendered header follows the engine status."""
        console = Console(record=True, width=100, height=30, color_system=None)
        display = RunDisplay(projector, config=view_config, console=console)
        engine.status = "paused"
        console.print(display.render())
        assert "PAUSED" in console.export_text()

    def test_show_iteration_prints_detail(self, projector, view_config, make_result):
        """Without a live region the detail view is printed."""
        console = Console(record=True, width=100, color_system=None)
        display = RunDisplay(projector, config=view_config, console=console)
        display.show_iteration(make_result(), total_iterations=4)
        assert "Iteration 3 of 4" in console.export_text()
