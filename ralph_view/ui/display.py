"""Display implementations for the run view."""

import time
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.layout import Layout
from rich.live import Live

from ..config import ViewConfig, get_config
from ..engine.types import IterationResult, IterationStatus
from .components import format_elapsed_time, render_iteration_detail, render_run_view
from .projector import ViewStateProjector
from .state_adapter import RunViewState


class PlaintextDisplay:
    """Line-oriented display for non-interactive environments."""

    def __init__(self, projector: ViewStateProjector, config: Optional[ViewConfig] = None):
        """
        Initialize plaintext display.

        Args:
            projector: Projector providing snapshots
            config: View configuration
        """
        self.projector = projector
        self.config = config or get_config()
        self._start_time = time.time()
        self._last: Optional[RunViewState] = None

    @contextmanager
    def start(self) -> Generator[None, None, None]:
        """Context manager for display lifecycle."""
        print(f"Starting run: {self.config.epic_name}")
        unsubscribe = self.projector.subscribe(self.on_snapshot)
        try:
            yield
        finally:
            unsubscribe()
            elapsed = time.time() - self._start_time
            print(f"Run finished in {elapsed:.1f}s")

    def log_event(self, message: str) -> None:
        """Print a timestamped line."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        print(f"[{timestamp}] {message}")

    def on_snapshot(self, snapshot: RunViewState) -> None:
        """Print status, iteration and task changes; ticks are not printed."""
        last = self._last
        self._last = snapshot
        if last is None or last.run_status != snapshot.run_status:
            self.log_event(f"Status: {snapshot.run_status.value.upper()}")
        if last is None or last.current_iteration != snapshot.current_iteration:
            task = snapshot.selected_task
            suffix = f" ({task.id}: {task.title})" if task else ""
            self.log_event(f"Iteration {snapshot.current_iteration}{suffix}")
        if last is not None:
            for task in snapshot.tasks:
                previous = last.tasks.get(task.id)
                if previous is None:
                    self.log_event(f"Task {task.id} added: {task.title}")
                elif previous.status != task.status:
                    self.log_event(f"Task {task.id}: {task.status.value}")

    def show_iteration(self, result: IterationResult, total_iterations: int) -> None:
        """Print a short iteration summary."""
        duration = format_elapsed_time(result.duration_ms // 1000)
        print(
            f"Iteration {result.iteration} of {total_iterations}: "
            f"{result.task.id} {IterationStatus(result.status).value} in {duration}"
        )


class RunDisplay:
    """Rich live display for run monitoring."""

    def __init__(
        self,
        projector: ViewStateProjector,
        config: Optional[ViewConfig] = None,
        console: Optional[Console] = None,
    ):
        """
        Initialize run display.

        Args:
            projector: Projector providing snapshots
            config: View configuration
            console: Rich console instance (creates one if not provided)
        """
        self.projector = projector
        self.config = config or get_config()
        self.console = console or Console()
        self._live: Optional[Live] = None

    def render(self, snapshot: Optional[RunViewState] = None) -> Layout:
        """Build the renderable for a snapshot (the current one if None)."""
        snapshot = snapshot or self.projector.snapshot
        return render_run_view(
            snapshot,
            status=self.projector.display_status(),
            width=self.console.width,
            compact_width=self.config.compact_width,
            epic_name=self.config.epic_name,
            tracker_name=self.config.tracker_name,
        )

    @contextmanager
    def start(self) -> Generator[None, None, None]:
        """Context manager keeping a live region in sync with the projector."""
        with Live(
            self.render(),
            console=self.console,
            screen=True,
            auto_refresh=False,
        ) as live:
            self._live = live
            unsubscribe = self.projector.subscribe(self.on_snapshot)
            try:
                yield
            finally:
                unsubscribe()
                self._live = None

    def on_snapshot(self, snapshot: RunViewState) -> None:
        """Redraw the live region."""
        if self._live is not None:
            self._live.update(self.render(snapshot), refresh=True)

    def show_iteration(self, result: IterationResult, total_iterations: int) -> None:
        """Replace the live feed with the detail view of one iteration."""
        renderable = render_iteration_detail(result, total_iterations, self.config.output_dir)
        if self._live is not None:
            self._live.update(renderable, refresh=True)
        else:
            self.console.print(renderable)
