"""Projection of engine events into run view snapshots.

``fold_event`` is the pure reducer; ``ViewStateProjector`` owns the
current snapshot, feeds it from an engine and a 1 second clock, and
notifies observers after every change.

Usage:
    projector = ViewStateProjector(engine)
    detach = projector.attach()
    projector.subscribe(lambda snapshot: redraw(snapshot))
    ...
    detach()
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from typing import Optional

from ..config import ViewConfig, get_config
from ..engine.types import (
    STDOUT,
    STOP_REASON_ERROR,
    EngineEvent,
    EngineEventType,
    EngineStatus,
    ExecutionEngine,
)
from .state_adapter import (
    RunStatus,
    RunViewState,
    TaskItem,
    TaskStatus,
    clamp_index,
)

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[RunViewState], None]


def resolve_run_status(engine_status: str, has_error: bool) -> RunStatus:
    """Map a coarse engine status onto the run status shown in the header."""
    if has_error:
        return RunStatus.ERROR
    if engine_status == EngineStatus.RUNNING:
        return RunStatus.RUNNING
    if engine_status == EngineStatus.PAUSED:
        return RunStatus.PAUSED
    # stopping, idle and anything unrecognized
    return RunStatus.STOPPED


def _set_task_status(state: RunViewState, task_id: Optional[str], status: TaskStatus) -> RunViewState:
    if task_id is None:
        return state
    tasks = state.tasks.with_status(task_id, status)
    if tasks is state.tasks:
        return state
    return replace(state, tasks=tasks)


def _fold_engine_stopped(state: RunViewState, event: EngineEvent) -> RunViewState:
    status = state.status.with_base(RunStatus.STOPPED)
    if event.reason == STOP_REASON_ERROR:
        if not status.is_overridden:
            logger.warning("Engine stopped with an error; run marked as failed")
        status = status.override(STOP_REASON_ERROR)
    return replace(state, status=status)


def _fold_iteration_started(state: RunViewState, event: EngineEvent) -> RunViewState:
    state = replace(
        state,
        current_iteration=event.iteration if event.iteration is not None else state.current_iteration,
        output_buffer="",
    )
    task_id = event.task_id
    if task_id is None:
        return state
    state = _set_task_status(state, task_id, TaskStatus.ACTIVE)
    index = state.tasks.index_of(task_id)
    if index is not None:
        state = replace(state, selected_index=index)
    return state


def _fold_iteration_completed(state: RunViewState, event: EngineEvent) -> RunViewState:
    if event.result is None or not event.result.task_completed:
        return state
    return _set_task_status(state, event.result.task.id, TaskStatus.DONE)


def _fold_task_selected(state: RunViewState, event: EngineEvent) -> RunViewState:
    if event.task is None:
        return state
    tasks = state.tasks.add(
        TaskItem(
            id=event.task.id,
            title=event.task.title,
            status=TaskStatus.PENDING,
            description=event.task.description,
            iteration=event.iteration or 0,
        )
    )
    if tasks is state.tasks:
        return state
    return replace(state, tasks=tasks)


def _fold_agent_output(state: RunViewState, event: EngineEvent) -> RunViewState:
    if event.stream != STDOUT:
        return state
    return replace(state, output_buffer=state.output_buffer + event.data)


_FOLDERS: dict[str, Callable[[RunViewState, EngineEvent], RunViewState]] = {
    EngineEventType.ENGINE_STARTED.value: lambda s, e: replace(
        s, status=s.status.with_base(RunStatus.RUNNING)
    ),
    EngineEventType.ENGINE_STOPPED.value: _fold_engine_stopped,
    EngineEventType.ENGINE_PAUSED.value: lambda s, e: replace(
        s, status=s.status.with_base(RunStatus.PAUSED)
    ),
    EngineEventType.ENGINE_RESUMED.value: lambda s, e: replace(
        s, status=s.status.with_base(RunStatus.RUNNING)
    ),
    EngineEventType.ITERATION_STARTED.value: _fold_iteration_started,
    EngineEventType.ITERATION_COMPLETED.value: _fold_iteration_completed,
    EngineEventType.ITERATION_FAILED.value: lambda s, e: _set_task_status(
        s, e.task_id, TaskStatus.BLOCKED
    ),
    EngineEventType.TASK_SELECTED.value: _fold_task_selected,
    EngineEventType.TASK_COMPLETED.value: lambda s, e: _set_task_status(
        s, e.task_id, TaskStatus.DONE
    ),
    EngineEventType.AGENT_OUTPUT.value: _fold_agent_output,
}


def fold_event(state: RunViewState, event: EngineEvent) -> RunViewState:
    """Apply one engine event to a snapshot and return the next snapshot.

    Unknown event kinds leave the snapshot untouched.

    Args:
        state: Current snapshot
        event: Event to apply

    Returns:
        The next snapshot (``state`` itself when nothing changed)
    """
    event_type = getattr(event.type, "value", event.type)
    folder = _FOLDERS.get(event_type)
    if folder is None:
        logger.debug(f"Ignoring unknown engine event: {event_type}")
        return state
    new_state = folder(state, event)
    clamped = clamp_index(new_state.selected_index, len(new_state.tasks))
    if clamped != new_state.selected_index:
        new_state = replace(new_state, selected_index=clamped)
    return new_state


class _Ticker:
    """Daemon thread calling a function at a fixed interval until stopped."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self._interval = interval
        self._callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name="ralph-view-ticker", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self._callback()


class ViewStateProjector:
    """Thread-safe owner of the run view snapshot.

    Engine events and clock ticks are applied one at a time, so a snapshot
    is never observed half-applied. A dispatch lock spans computing a
    snapshot and notifying observers, so observers see snapshots in the
    order they were produced and the last one delivered is always the
    current one. The state lock only guards reads and writes of the
    snapshot itself.
    """

    def __init__(
        self,
        engine: ExecutionEngine,
        config: Optional[ViewConfig] = None,
        auto_tick: bool = True,
    ):
        """
        Initialize the projector.

        Args:
            engine: Engine to project events from
            config: View configuration (environment defaults if None)
            auto_tick: Start a background clock on attach
        """
        self._engine = engine
        self._config = config or get_config()
        self._auto_tick = auto_tick
        self._lock = threading.Lock()
        # Reentrant so observers may drive the projector from their callback
        self._dispatch_lock = threading.RLock()
        self._state = RunViewState()
        self._listeners: list[SnapshotListener] = []
        self._engine_unsubscribe: Optional[Callable[[], None]] = None
        self._ticker: Optional[_Ticker] = None
        # Events delivered while the cold-start read is in progress
        self._backlog: Optional[list[EngineEvent]] = None
        self._attached = False
        self._closed = False

    @property
    def snapshot(self) -> RunViewState:
        """Current snapshot."""
        with self._lock:
            return self._state

    @property
    def is_attached(self) -> bool:
        return self._attached and not self._closed

    def attach(self) -> Callable[[], None]:
        """Start projecting the engine.

        Subscribes to the engine's events, then reads its current iteration
        and output once and starts the clock. Events delivered during the
        read are folded on top of it, and events from other threads wait
        until the cold start is applied.

        Returns:
            Teardown function; after it returns no further changes happen
        """
        if self._closed:
            raise RuntimeError("Projector has been detached and cannot be reused")
        if self._attached:
            return self.detach

        with self._dispatch_lock:
            with self._lock:
                self._backlog = []
            self._engine_unsubscribe = self._engine.on(self.handle_event)
            try:
                engine_state = self._engine.get_state()
            finally:
                with self._lock:
                    backlog, self._backlog = self._backlog, None

            def cold_start(state: RunViewState) -> RunViewState:
                state = replace(
                    state,
                    current_iteration=engine_state.current_iteration,
                    output_buffer=engine_state.current_output,
                )
                for event in backlog:
                    state = fold_event(state, event)
                return state

            self._apply(cold_start)
            self._attached = True

        if self._auto_tick:
            self._ticker = _Ticker(self._config.tick_interval_seconds, self.tick)
            self._ticker.start()

        logger.info(
            f"Projector attached at iteration {engine_state.current_iteration}"
            f" ({len(backlog)} events during cold start)"
        )
        return self.detach

    def detach(self) -> None:
        """Stop projecting. Safe to call more than once."""
        with self._dispatch_lock:
            with self._lock:
                if self._closed:
                    return
                self._closed = True
                ticker = self._ticker
                unsubscribe = self._engine_unsubscribe
                self._ticker = None
                self._engine_unsubscribe = None
                self._listeners = []

        if ticker is not None:
            ticker.stop()
        if unsubscribe is not None:
            unsubscribe()
        logger.info("Projector detached")

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register an observer for new snapshots.

        Args:
            listener: Called with each new snapshot

        Returns:
            Function that removes the observer
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def handle_event(self, event: EngineEvent) -> None:
        """Fold one engine event into the snapshot."""
        with self._lock:
            if self._backlog is not None:
                self._backlog.append(event)
                return
        self._apply(lambda s: fold_event(s, event))

    def tick(self) -> None:
        """Advance the elapsed-time counter by one second."""
        self._apply(lambda s: replace(s, elapsed_seconds=s.elapsed_seconds + 1))

    def select_previous(self) -> None:
        """Move the selection cursor up one task."""
        self._apply(
            lambda s: replace(s, selected_index=clamp_index(s.selected_index - 1, len(s.tasks)))
        )

    def select_next(self) -> None:
        """Move the selection cursor down one task."""
        self._apply(
            lambda s: replace(s, selected_index=clamp_index(s.selected_index + 1, len(s.tasks)))
        )

    def display_status(self) -> RunStatus:
        """Status for the header, combining engine status and the error flag."""
        return resolve_run_status(self._engine.get_status(), self.snapshot.has_error)

    def _apply(self, transform: Callable[[RunViewState], RunViewState]) -> None:
        with self._dispatch_lock:
            with self._lock:
                if self._closed:
                    return
                previous = self._state
                self._state = transform(previous)
                if self._state is previous:
                    return
                snapshot = self._state
                listeners = list(self._listeners)

            for listener in listeners:
                # A listener that changed the state has already delivered the newer snapshot
                if self.snapshot is not snapshot:
                    break
                listener(snapshot)
