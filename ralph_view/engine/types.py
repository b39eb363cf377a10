"""Engine-facing types consumed by the view layer.

The execution engine lives elsewhere; these structures describe the events
it emits and the iteration records it hands over for inspection.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable


class EngineEventType(str, Enum):
    """Kinds of events emitted by the execution engine."""

    # Engine lifecycle
    ENGINE_STARTED = "engine:started"
    ENGINE_STOPPED = "engine:stopped"
    ENGINE_PAUSED = "engine:paused"
    ENGINE_RESUMED = "engine:resumed"

    # Iteration lifecycle
    ITERATION_STARTED = "iteration:started"
    ITERATION_COMPLETED = "iteration:completed"
    ITERATION_FAILED = "iteration:failed"

    # Task lifecycle
    TASK_SELECTED = "task:selected"
    TASK_COMPLETED = "task:completed"

    # Agent streams
    AGENT_OUTPUT = "agent:output"


class EngineStatus(str, Enum):
    """Coarse engine status as reported by ``get_status()``."""

    RUNNING = "running"
    PAUSED = "paused"
    STOPPING = "stopping"
    IDLE = "idle"


class IterationStatus(str, Enum):
    """Status of a single iteration."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"
    SKIPPED = "skipped"


STOP_REASON_ERROR = "error"
STDOUT = "stdout"
STDERR = "stderr"


@dataclass(frozen=True)
class TaskRef:
    """Task as known to the engine."""

    id: str
    title: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TaskRef":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class AgentResult:
    """Captured result of one agent invocation."""

    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {"stdout": self.stdout, "stderr": self.stderr, "exit_code": self.exit_code}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgentResult":
        return cls(
            stdout=data.get("stdout", ""),
            stderr=data.get("stderr", ""),
            exit_code=data.get("exit_code"),
        )


@dataclass(frozen=True)
class IterationResult:
    """Record of one iteration, live or historical.

    Attributes:
        iteration: 1-based iteration number
        status: Iteration status
        task: Task the iteration worked on
        started_at: ISO timestamp of the start
        ended_at: ISO timestamp of the end
        duration_ms: Duration in milliseconds
        agent_result: Agent output, if the agent ran
        task_completed: Whether the task was marked complete
        promise_complete: Whether the completion promise tag was detected
        error: Error message for failed iterations
    """

    iteration: int
    status: IterationStatus
    task: TaskRef
    started_at: str
    ended_at: str
    duration_ms: int = 0
    agent_result: Optional[AgentResult] = None
    task_completed: bool = False
    promise_complete: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "iteration": self.iteration,
            "status": self.status.value,
            "task": self.task.to_dict(),
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "duration_ms": self.duration_ms,
            "agent_result": self.agent_result.to_dict() if self.agent_result else None,
            "task_completed": self.task_completed,
            "promise_complete": self.promise_complete,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IterationResult":
        """Create from dictionary."""
        agent_data = data.get("agent_result")
        return cls(
            iteration=data["iteration"],
            status=IterationStatus(data["status"]),
            task=TaskRef.from_dict(data["task"]),
            started_at=data["started_at"],
            ended_at=data.get("ended_at", data["started_at"]),
            duration_ms=data.get("duration_ms", 0),
            agent_result=AgentResult.from_dict(agent_data) if agent_data else None,
            task_completed=data.get("task_completed", False),
            promise_complete=data.get("promise_complete", False),
            error=data.get("error"),
        )


@dataclass(frozen=True)
class EngineEvent:
    """An event emitted by the execution engine.

    ``type`` is kept as a plain string so that kinds unknown to this
    package still construct and can be ignored downstream.

    Attributes:
        type: Event kind, usually an EngineEventType value
        iteration: Iteration number (iteration and task events)
        task: Task the event refers to
        result: Iteration result (iteration:completed)
        reason: Stop reason (engine:stopped)
        stream: Output stream name (agent:output)
        data: Output chunk (agent:output)
        timestamp: When the event occurred
    """

    type: str
    iteration: Optional[int] = None
    task: Optional[TaskRef] = None
    result: Optional[IterationResult] = None
    reason: Optional[str] = None
    stream: Optional[str] = None
    data: str = ""
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def task_id(self) -> Optional[str]:
        """Id of the task this event refers to, if any."""
        if self.task is not None:
            return self.task.id
        if self.result is not None:
            return self.result.task.id
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "type": str(getattr(self.type, "value", self.type)),
            "iteration": self.iteration,
            "task": self.task.to_dict() if self.task else None,
            "result": self.result.to_dict() if self.result else None,
            "reason": self.reason,
            "stream": self.stream,
            "data": self.data,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineEvent":
        """Create from dictionary."""
        task_data = data.get("task")
        result_data = data.get("result")
        return cls(
            type=data["type"],
            iteration=data.get("iteration"),
            task=TaskRef.from_dict(task_data) if task_data else None,
            result=IterationResult.from_dict(result_data) if result_data else None,
            reason=data.get("reason"),
            stream=data.get("stream"),
            data=data.get("data", ""),
            timestamp=data.get("timestamp", datetime.now().isoformat()),
        )


@dataclass(frozen=True)
class EngineState:
    """Point-in-time engine state used for cold starts."""

    current_iteration: int = 0
    current_output: str = ""


EngineListener = Callable[[EngineEvent], None]


@runtime_checkable
class ExecutionEngine(Protocol):
    """Interface of the execution engine as seen by the view layer."""

    def on(self, listener: EngineListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        ...

    def get_state(self) -> EngineState:
        """Return the current iteration and its output so far."""
        ...

    def get_status(self) -> str:
        """Return one of running, paused, stopping, idle."""
        ...

    def pause(self) -> None:
        """Request a pause after the current iteration."""
        ...

    def resume(self) -> None:
        """Resume a paused engine."""
        ...

    def stop(self) -> None:
        """Request the engine to stop."""
        ...


# Event factory functions


def engine_started_event() -> EngineEvent:
    """Create an engine started event."""
    return EngineEvent(type=EngineEventType.ENGINE_STARTED.value)


def engine_stopped_event(reason: Optional[str] = None) -> EngineEvent:
    """Create an engine stopped event."""
    return EngineEvent(type=EngineEventType.ENGINE_STOPPED.value, reason=reason)


def engine_paused_event() -> EngineEvent:
    """Create an engine paused event."""
    return EngineEvent(type=EngineEventType.ENGINE_PAUSED.value)


def engine_resumed_event() -> EngineEvent:
    """Create an engine resumed event."""
    return EngineEvent(type=EngineEventType.ENGINE_RESUMED.value)


def iteration_started_event(iteration: int, task: TaskRef) -> EngineEvent:
    """Create an iteration started event."""
    return EngineEvent(
        type=EngineEventType.ITERATION_STARTED.value,
        iteration=iteration,
        task=task,
    )


def iteration_completed_event(result: IterationResult) -> EngineEvent:
    """Create an iteration completed event."""
    return EngineEvent(
        type=EngineEventType.ITERATION_COMPLETED.value,
        iteration=result.iteration,
        result=result,
    )


def iteration_failed_event(
    iteration: int,
    task: TaskRef,
    error: Optional[str] = None,
) -> EngineEvent:
    """Create an iteration failed event."""
    return EngineEvent(
        type=EngineEventType.ITERATION_FAILED.value,
        iteration=iteration,
        task=task,
        reason=error,
    )


def task_selected_event(task: TaskRef, iteration: int) -> EngineEvent:
    """Create a task selected event."""
    return EngineEvent(
        type=EngineEventType.TASK_SELECTED.value,
        iteration=iteration,
        task=task,
    )


def task_completed_event(task: TaskRef, iteration: Optional[int] = None) -> EngineEvent:
    """Create a task completed event."""
    return EngineEvent(
        type=EngineEventType.TASK_COMPLETED.value,
        iteration=iteration,
        task=task,
    )


def agent_output_event(data: str, stream: str = STDOUT) -> EngineEvent:
    """Create an agent output event."""
    return EngineEvent(type=EngineEventType.AGENT_OUTPUT.value, stream=stream, data=data)
