"""Event timeline reconstruction for a single iteration."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..engine.types import IterationResult, IterationStatus

PROMISE_TAG = "<promise>COMPLETE</promise>"


class TimelineEventKind(str, Enum):
    """Kinds of entries in an iteration timeline."""

    STARTED = "started"
    AGENT_RUNNING = "agent_running"
    TASK_COMPLETED = "task_completed"
    COMPLETED = "completed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TimelineEvent:
    """Single entry in an iteration timeline."""

    timestamp: str
    kind: TimelineEventKind
    description: str


_TERMINAL_EVENTS = {
    IterationStatus.COMPLETED: (TimelineEventKind.COMPLETED, "Iteration completed successfully"),
    IterationStatus.FAILED: (TimelineEventKind.FAILED, "Iteration failed"),
    IterationStatus.INTERRUPTED: (TimelineEventKind.INTERRUPTED, "Iteration interrupted by user"),
    IterationStatus.SKIPPED: (TimelineEventKind.SKIPPED, "Iteration skipped"),
}


def build_timeline(result: IterationResult) -> list[TimelineEvent]:
    """
    Build the ordered event timeline of an iteration.

    Only fields of ``result`` are used, so the same record always yields
    the same timeline. A running iteration has no terminal entry.

    Args:
        result: Iteration record

    Returns:
        Timeline entries in display order
    """
    events = [
        TimelineEvent(
            timestamp=result.started_at,
            kind=TimelineEventKind.STARTED,
            description=f"Started working on {result.task.id}",
        )
    ]

    # The agent phase is not timed separately; it shares the start timestamp.
    if result.agent_result is not None:
        events.append(
            TimelineEvent(
                timestamp=result.started_at,
                kind=TimelineEventKind.AGENT_RUNNING,
                description="Agent executing prompt",
            )
        )

    if result.task_completed:
        description = (
            f"Task marked complete ({PROMISE_TAG} detected)"
            if result.promise_complete
            else "Task marked complete"
        )
        events.append(
            TimelineEvent(
                timestamp=result.ended_at,
                kind=TimelineEventKind.TASK_COMPLETED,
                description=description,
            )
        )

    terminal = _TERMINAL_EVENTS.get(IterationStatus(result.status))
    if terminal is not None:
        kind, description = terminal
        if kind == TimelineEventKind.FAILED and result.error:
            description = result.error
        events.append(
            TimelineEvent(timestamp=result.ended_at, kind=kind, description=description)
        )

    return events


def format_timestamp(iso_string: str) -> str:
    """Format an ISO timestamp as local ``HH:MM:SS``.

    Strings that do not parse are returned unchanged.
    """
    try:
        moment = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    except (TypeError, ValueError, AttributeError):
        return iso_string
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%H:%M:%S")
