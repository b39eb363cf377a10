"""Rich rendering components for the run view and iteration details."""

from typing import Optional

from rich.console import Group, RenderableType
from rich.layout import Layout
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from ..engine.types import IterationResult, IterationStatus
from .output_segments import CodeBlock, OutputSegment, format_output_path, segment_output
from .state_adapter import RunStatus, RunViewState, TaskStatus
from .timeline import TimelineEventKind, build_timeline, format_timestamp

HEADER_HEIGHT = 3
FOOTER_HEIGHT = 3

RUN_STATUS_STYLES = {
    RunStatus.RUNNING: "bold green",
    RunStatus.PAUSED: "bold yellow",
    RunStatus.STOPPED: "dim",
    RunStatus.ERROR: "bold red",
}

TASK_STATUS_ICONS = {
    TaskStatus.PENDING: "○",
    TaskStatus.ACTIVE: "▶",
    TaskStatus.DONE: "✓",
    TaskStatus.BLOCKED: "✗",
}

TASK_STATUS_STYLES = {
    TaskStatus.PENDING: "dim",
    TaskStatus.ACTIVE: "bold cyan",
    TaskStatus.DONE: "green",
    TaskStatus.BLOCKED: "red",
}

ITERATION_STATUS_INDICATORS = {
    IterationStatus.COMPLETED: "✓",
    IterationStatus.RUNNING: "▶",
    IterationStatus.FAILED: "✗",
    IterationStatus.INTERRUPTED: "⊘",
    IterationStatus.SKIPPED: "⊖",
}

ITERATION_STATUS_STYLES = {
    IterationStatus.COMPLETED: "green",
    IterationStatus.RUNNING: "cyan",
    IterationStatus.FAILED: "red",
    IterationStatus.INTERRUPTED: "yellow",
    IterationStatus.SKIPPED: "dim",
}

ITERATION_STATUS_LABELS = {
    IterationStatus.COMPLETED: "Completed",
    IterationStatus.RUNNING: "Running",
    IterationStatus.FAILED: "Failed",
    IterationStatus.INTERRUPTED: "Interrupted",
    IterationStatus.SKIPPED: "Skipped",
}

TIMELINE_SYMBOLS = {
    TimelineEventKind.STARTED: "▶",
    TimelineEventKind.AGENT_RUNNING: "⚙",
    TimelineEventKind.TASK_COMPLETED: "✓",
    TimelineEventKind.COMPLETED: "✓",
    TimelineEventKind.FAILED: "✗",
    TimelineEventKind.INTERRUPTED: "⊘",
    TimelineEventKind.SKIPPED: "⊖",
}

TIMELINE_STYLES = {
    TimelineEventKind.STARTED: "cyan",
    TimelineEventKind.AGENT_RUNNING: "magenta",
    TimelineEventKind.TASK_COMPLETED: "green",
    TimelineEventKind.COMPLETED: "green",
    TimelineEventKind.FAILED: "red",
    TimelineEventKind.INTERRUPTED: "yellow",
    TimelineEventKind.SKIPPED: "dim",
}


def format_elapsed_time(seconds: int) -> str:
    """Format elapsed seconds in human-readable format."""
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    else:
        return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def render_header(
    snapshot: RunViewState,
    status: Optional[RunStatus] = None,
    epic_name: str = "Ralph",
    tracker_name: str = "beads",
) -> Panel:
    """
    Render header component.

    Args:
        snapshot: Run view snapshot
        status: Status to show (the snapshot's own status if None)
        epic_name: Name of the epic being worked on
        tracker_name: Name of the task tracker

    Returns:
        Header panel
    """
    status = status or snapshot.run_status
    header_text = Text()
    header_text.append(f"{epic_name}", style="bold cyan")
    header_text.append("  |  Status: ")
    header_text.append(status.value.upper(), style=RUN_STATUS_STYLES[status])
    header_text.append(f"  |  Elapsed: {format_elapsed_time(snapshot.elapsed_seconds)}")
    header_text.append(f"  |  Tracker: {tracker_name}", style="dim")
    return Panel(header_text, border_style="blue")


def render_task_list(snapshot: RunViewState) -> Panel:
    """
    Render the task roster with the selection marker.

    Args:
        snapshot: Run view snapshot

    Returns:
        Task list panel
    """
    table = Table(show_header=False, box=None, expand=True, padding=(0, 1))
    table.add_column("Marker", width=1)
    table.add_column("Status", width=1)
    table.add_column("Task", ratio=1, no_wrap=True)

    for index, task in enumerate(snapshot.tasks):
        selected = index == snapshot.selected_index
        style = TASK_STATUS_STYLES[task.status]
        table.add_row(
            Text(">" if selected else " ", style="bold"),
            Text(TASK_STATUS_ICONS[task.status], style=style),
            Text(f"{task.id}  {task.title}", style=f"{style} reverse" if selected else style),
        )

    if not snapshot.tasks:
        return Panel(Text("No tasks yet", style="dim"), title="Tasks", border_style="dim")

    return Panel(
        table,
        title=f"Tasks ({snapshot.completed_tasks}/{snapshot.total_tasks})",
        border_style="blue",
    )


def render_task_details(snapshot: RunViewState) -> Panel:
    """
    Render the selected task and the live output of the current iteration.

    Args:
        snapshot: Run view snapshot

    Returns:
        Details panel
    """
    renderables: list[RenderableType] = []
    task = snapshot.selected_task
    if task is None:
        renderables.append(Text("No task selected", style="dim"))
    else:
        title = Text()
        title.append(f"{TASK_STATUS_ICONS[task.status]} ", style=TASK_STATUS_STYLES[task.status])
        title.append(task.id, style="bold cyan")
        title.append(f" - {task.title}")
        renderables.append(title)
        if task.description:
            renderables.append(Text(task.description, style="dim"))

    renderables.append(Text(f"\nIteration {snapshot.current_iteration}", style="bold"))
    if snapshot.output_buffer:
        renderables.append(Text(snapshot.output_buffer))
    else:
        renderables.append(Text("Waiting for output...", style="dim"))

    return Panel(Group(*renderables), title="Details", border_style="blue")


def render_footer(snapshot: RunViewState) -> Table:
    """
    Render progress footer.

    Args:
        snapshot: Run view snapshot

    Returns:
        Footer grid with a progress bar
    """
    grid = Table.grid(expand=True, padding=(0, 1))
    grid.add_column(ratio=1)
    grid.add_column(justify="right")
    grid.add_row(
        ProgressBar(total=100, completed=snapshot.progress_percent),
        Text(
            f"{snapshot.completed_tasks}/{snapshot.total_tasks} tasks  "
            f"{snapshot.progress_percent}%"
        ),
    )
    grid.add_row(
        Text("q quit  ↑/k ↓/j select  p pause/resume  c stop  enter details", style="dim"),
        Text(""),
    )
    return grid


def render_run_view(
    snapshot: RunViewState,
    status: Optional[RunStatus] = None,
    width: int = 120,
    compact_width: int = 80,
    epic_name: str = "Ralph",
    tracker_name: str = "beads",
) -> Layout:
    """
    Render the full run view.

    Panels are stacked when ``width`` is below ``compact_width`` and placed
    side by side otherwise.

    Returns:
        Layout for the whole screen
    """
    layout = Layout(name="root")
    layout.split_column(
        Layout(
            render_header(snapshot, status, epic_name, tracker_name),
            name="header",
            size=HEADER_HEIGHT,
        ),
        Layout(name="main", ratio=1),
        Layout(render_footer(snapshot), name="footer", size=FOOTER_HEIGHT),
    )
    panels = (
        Layout(render_task_list(snapshot), name="tasks"),
        Layout(render_task_details(snapshot), name="details", ratio=2),
    )
    if width < compact_width:
        layout["main"].split_column(*panels)
    else:
        layout["main"].split_row(*panels)
    return layout


def render_output_segments(segments: list[OutputSegment]) -> list[RenderableType]:
    """
    Render output segments, styling code blocks apart from prose.

    Args:
        segments: Segments from ``segment_output``

    Returns:
        One renderable per segment
    """
    renderables: list[RenderableType] = []
    for segment in segments:
        if isinstance(segment, CodeBlock):
            renderables.append(
                Panel(
                    Syntax(segment.content, segment.language, theme="ansi_dark", word_wrap=True),
                    title=Text(f"[{segment.language}]", style="dim"),
                    title_align="left",
                    border_style="dim",
                )
            )
        else:
            renderables.append(Text(segment.text))
    return renderables


def _details_table(result: IterationResult) -> Table:
    status = IterationStatus(result.status)
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row(
        "Status",
        Text(ITERATION_STATUS_LABELS[status], style=ITERATION_STATUS_STYLES[status]),
    )
    table.add_row("Start Time", Text(format_timestamp(result.started_at)))
    table.add_row("End Time", Text(format_timestamp(result.ended_at)))
    table.add_row(
        "Duration",
        Text(format_elapsed_time(result.duration_ms // 1000), style="cyan"),
    )
    if result.task_completed:
        table.add_row("Task Completed", Text("Yes", style="green"))
    if result.promise_complete:
        table.add_row("Promise Detected", Text("Yes", style="green"))
    if result.error:
        table.add_row("Error", Text(result.error, style="red"))
    return table


def _timeline_text(result: IterationResult) -> Text:
    text = Text()
    timeline = build_timeline(result)
    for index, event in enumerate(timeline):
        text.append(format_timestamp(event.timestamp), style="dim")
        text.append(f" {TIMELINE_SYMBOLS[event.kind]} ", style=TIMELINE_STYLES[event.kind])
        text.append(event.description)
        if index < len(timeline) - 1:
            text.append("\n")
    return text


def render_iteration_detail(
    result: IterationResult,
    total_iterations: int,
    output_dir: str = ".ralph-output",
) -> Panel:
    """
    Render the detail view of one iteration.

    Args:
        result: Iteration record
        total_iterations: Total iterations of the run
        output_dir: Directory holding persisted iteration output

    Returns:
        Detail panel
    """
    status = IterationStatus(result.status)

    heading = Text()
    heading.append(ITERATION_STATUS_INDICATORS[status], style=ITERATION_STATUS_STYLES[status])
    heading.append(f" Iteration {result.iteration} of {total_iterations}", style="bold")

    task_line = Text()
    task_line.append("Task: ", style="dim")
    task_line.append(result.task.id, style="cyan")
    task_line.append(f" - {result.task.title}")

    sections: list[RenderableType] = [
        heading,
        task_line,
        Panel(_details_table(result), title="Details", title_align="left", border_style="dim"),
        Panel(_timeline_text(result), title="Events Timeline", title_align="left", border_style="dim"),
        Panel(
            Text(format_output_path(result.iteration, result.task.id, output_dir), style="magenta"),
            title="Persisted Output",
            title_align="left",
            border_style="dim",
        ),
    ]

    agent_output = result.agent_result.stdout if result.agent_result else ""
    if agent_output:
        sections.append(
            Panel(
                Group(*render_output_segments(segment_output(agent_output))),
                title="Agent Output",
                title_align="left",
                border_style="dim",
            )
        )

    sections.append(Text("Press Esc to return to iteration list, or 't' for task list", style="dim"))
    return Panel(Group(*sections), title="Iteration Details [Esc to go back]", border_style="cyan")
