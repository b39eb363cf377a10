"""Tests for Rich rendering components."""

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ralph_view.engine import (
    IterationStatus,
    TaskRef,
    agent_output_event,
    engine_stopped_event,
    iteration_started_event,
    task_completed_event,
    task_selected_event,
)
from ralph_view.ui.components import (
    format_elapsed_time,
    render_footer,
    render_header,
    render_iteration_detail,
    render_output_segments,
    render_run_view,
    render_task_list,
)
from ralph_view.ui.output_segments import CodeBlock, ProseLine
from ralph_view.ui.projector import fold_event
from ralph_view.ui.state_adapter import RunStatus, RunViewState


def _render(renderable, width: int = 120, height: int = 60) -> str:
    console = Console(record=True, width=width, height=height, color_system=None)
    console.print(renderable)
    return console.export_text()


def _snapshot() -> RunViewState:
    state = RunViewState()
    for event in [
        task_selected_event(TaskRef(id="T-1", title="Add login form"), 1),
        task_selected_event(TaskRef(id="T-2", title="Write docs"), 1),
        iteration_started_event(2, TaskRef(id="T-2", title="Write docs")),
        agent_output_event("Editing README"),
        task_completed_event(TaskRef(id="T-1", title="Add login form")),
    ]:
        state = fold_event(state, event)
    return state


class TestFormatElapsedTime:
    """Tests for format_elapsed_time()."""

    def test_ranges(self):
        """Seconds, minutes and hours are formatted differently."""
        assert format_elapsed_time(5) == "5s"
        assert format_elapsed_time(125) == "2m 5s"
        assert format_elapsed_time(3725) == "1h 2m"


class TestRunView:
    """Tests for the live run view."""

    def test_header_shows_status_and_elapsed(self):
        """The header carries epic, status and elapsed time."""
        text = _render(render_header(RunViewState(elapsed_seconds=65), epic_name="Epic-9"))
        assert "Epic-9" in text
        assert "RUNNING" in text
        assert "1m 5s" in text

    def test_header_shows_error_override(self):
        """The sticky error flag shows as ERROR."""
        state = fold_event(RunViewState(), engine_stopped_event("error"))
        assert "ERROR" in _render(render_header(state))

    def test_header_accepts_explicit_status(self):
        """An explicit status replaces the snapshot status."""
        assert "PAUSED" in _render(render_header(RunViewState(), status=RunStatus.PAUSED))

    def test_task_list(self):
        """Tasks are listed with counts and a selection marker."""
        text = _render(render_task_list(_snapshot()))
        assert "Tasks (1/2)" in text
        assert "T-1  Add login form" in text
        selected_line = next(line for line in text.splitlines() if "T-2" in line)
        other_line = next(line for line in text.splitlines() if "T-1" in line)
        assert ">" in selected_line
        assert ">" not in other_line

    def test_empty_task_list(self):
        """An empty roster shows a placeholder."""
        assert "No tasks yet" in _render(render_task_list(RunViewState()))

    def test_footer_progress(self):
        """The footer shows task counts and percent."""
        assert "1/2 tasks  50%" in _render(render_footer(_snapshot()))

    def test_full_layout(self):
        """The full view includes the live output of the selected task."""
        text = _render(render_run_view(_snapshot(), width=120), height=30)
        assert "Write docs" in text
        assert "Iteration 2" in text
        assert "Editing README" in text

    def test_compact_layout(self):
        """Narrow terminals still render every panel."""
        text = _render(render_run_view(_snapshot(), width=60), width=60, height=40)
        assert "Tasks (1/2)" in text
        assert "Editing README" in text


class TestOutputSegments:
    """Tests for render_output_segments()."""

    def test_code_blocks_are_panels(self):
        """Code becomes a titled panel, prose stays text."""
        rendered = render_output_segments(
            [ProseLine("intro"), CodeBlock(language="python", content="x = 1")]
        )
        assert isinstance(rendered[0], Text)
        assert isinstance(rendered[1], Panel)
        text = _render(rendered[1])
        assert "[python]" in text
        assert "x = 1" in text


class TestIterationDetail:
    """Tests for render_iteration_detail()."""

    def test_detail_sections(self, make_result, agent_result):
        """The detail view shows heading, metadata, timeline, path and output."""
        result = make_result(agent_result=agent_result, task_completed=True, promise_complete=True)
        text = _render(render_iteration_detail(result, total_iterations=10, output_dir="out"))

        assert "Iteration 3 of 10" in text
        assert "T-1 - Add login form" in text
        assert "Completed" in text
        assert "2m 5s" in text
        assert "Promise Detected" in text
        assert "Agent executing prompt" in text
        assert "<promise>COMPLETE</promise> detected" in text
        assert "out/iteration-003-T-1.md" in text
        assert "Working on it" in text
        assert "print('hi')" in text

    def test_failed_iteration_shows_error(self, make_result):
        """Failed iterations show the error and omit agent output."""
        result = make_result(status=IterationStatus.FAILED, error="Timeout after 300s")
        text = _render(render_iteration_detail(result, total_iterations=3))

        assert "Failed" in text
        assert "Timeout after 300s" in text
        assert "Agent Output" not in text
        assert ".ralph-output/iteration-003-T-1.md" in text
