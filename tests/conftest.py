"""Pytest fixtures for run view tests."""

import pytest

from ralph_view.config import ViewConfig, reset_config
from ralph_view.engine import (
    AgentResult,
    EngineEvent,
    EngineState,
    IterationResult,
    IterationStatus,
    TaskRef,
)
from ralph_view.ui.projector import ViewStateProjector


class FakeEngine:
    """In-memory engine that records commands and replays events."""

    def __init__(self, state: EngineState = EngineState(), status: str = "running"):
        self.state = state
        self.status = status
        self.listeners = []
        self.commands = []

    def on(self, listener):
        self.listeners.append(listener)

        def unsubscribe():
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def emit(self, event: EngineEvent) -> None:
        for listener in list(self.listeners):
            listener(event)

    def get_state(self) -> EngineState:
        return self.state

    def get_status(self) -> str:
        return self.status

    def pause(self) -> None:
        self.commands.append("pause")

    def resume(self) -> None:
        self.commands.append("resume")

    def stop(self) -> None:
        self.commands.append("stop")


@pytest.fixture(autouse=True)
def _fresh_config():
    """Keep the config singleton from leaking between tests."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def view_config():
    """Default view configuration."""
    return ViewConfig()


@pytest.fixture
def engine():
    """Fake engine with no prior state."""
    return FakeEngine()


@pytest.fixture
def projector(engine, view_config):
    """Attached projector without a background clock."""
    projector = ViewStateProjector(engine, config=view_config, auto_tick=False)
    detach = projector.attach()
    yield projector
    detach()


@pytest.fixture
def task_ref():
    """A task as reported by the engine."""
    return TaskRef(id="T-1", title="Add login form", description="Form with validation")


@pytest.fixture
def make_result(task_ref):
    """Factory for iteration results with sensible defaults."""

    def _make(**overrides):
        values = {
            "iteration": 3,
            "status": IterationStatus.COMPLETED,
            "task": task_ref,
            "started_at": "2024-05-01T10:00:00",
            "ended_at": "2024-05-01T10:02:05",
            "duration_ms": 125000,
        }
        values.update(overrides)
        return IterationResult(**values)

    return _make


@pytest.fixture
def agent_result():
    """Agent result with prose and one fenced block."""
    return AgentResult(stdout="Working on it\n```python\nprint('hi')\n```\nDone", exit_code=0)
