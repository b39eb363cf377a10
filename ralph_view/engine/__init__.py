"""Execution engine interface consumed by the view layer.

The engine itself runs elsewhere. This package only describes what the
view layer reads from it: events, iteration records and a status query.

Usage:
    from ralph_view.engine import EngineEvent, iteration_started_event

    engine.on(lambda event: print(event.type))
"""

from .types import (
    STDERR,
    STDOUT,
    STOP_REASON_ERROR,
    AgentResult,
    EngineEvent,
    EngineEventType,
    EngineListener,
    EngineState,
    EngineStatus,
    ExecutionEngine,
    IterationResult,
    IterationStatus,
    TaskRef,
    agent_output_event,
    engine_paused_event,
    engine_resumed_event,
    engine_started_event,
    engine_stopped_event,
    iteration_completed_event,
    iteration_failed_event,
    iteration_started_event,
    task_completed_event,
    task_selected_event,
)

__all__ = [
    # Protocol and state
    "ExecutionEngine",
    "EngineListener",
    "EngineState",
    "EngineStatus",
    # Records
    "AgentResult",
    "IterationResult",
    "IterationStatus",
    "TaskRef",
    # Events
    "EngineEvent",
    "EngineEventType",
    "STDOUT",
    "STDERR",
    "STOP_REASON_ERROR",
    # Event factories
    "engine_started_event",
    "engine_stopped_event",
    "engine_paused_event",
    "engine_resumed_event",
    "iteration_started_event",
    "iteration_completed_event",
    "iteration_failed_event",
    "task_selected_event",
    "task_completed_event",
    "agent_output_event",
]
