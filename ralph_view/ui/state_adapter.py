"""State types for the run view."""

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Optional


class TaskStatus(str, Enum):
    """Display status of a task in the roster."""

    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"
    BLOCKED = "blocked"


class RunStatus(str, Enum):
    """Display status of the whole run."""

    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass(frozen=True)
class TaskItem:
    """UI-friendly task information."""

    id: str
    title: str
    status: TaskStatus = TaskStatus.PENDING
    description: str = ""
    iteration: int = 0


class TaskRoster:
    """Append-only, id-keyed task collection in discovery order.

    Every operation returns a new roster; an existing roster never changes.
    """

    __slots__ = ("_items",)

    def __init__(self, items: tuple[TaskItem, ...] = ()):
        by_id: dict[str, TaskItem] = {}
        for item in items:
            by_id.setdefault(item.id, item)
        self._items = MappingProxyType(by_id)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[TaskItem]:
        return iter(self._items.values())

    def __getitem__(self, index: int) -> TaskItem:
        return tuple(self._items.values())[index]

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TaskRoster):
            return NotImplemented
        return tuple(self) == tuple(other)

    def __repr__(self) -> str:
        return f"TaskRoster({list(self._items)!r})"

    def get(self, task_id: str) -> Optional[TaskItem]:
        """Return the task with this id, if known."""
        return self._items.get(task_id)

    def index_of(self, task_id: str) -> Optional[int]:
        """Return the position of a task, or None if it is unknown."""
        for index, known_id in enumerate(self._items):
            if known_id == task_id:
                return index
        return None

    def add(self, item: TaskItem) -> "TaskRoster":
        """Append a task unless its id is already present."""
        if item.id in self._items:
            return self
        return TaskRoster(tuple(self) + (item,))

    def with_status(self, task_id: str, status: TaskStatus) -> "TaskRoster":
        """Return a roster where the given task has a new status."""
        current = self._items.get(task_id)
        if current is None or current.status == status:
            return self
        return TaskRoster(
            tuple(replace(t, status=status) if t.id == task_id else t for t in self)
        )


@dataclass(frozen=True)
class RunStatusState:
    """Run status with an optional sticky override.

    ``base`` follows engine lifecycle events. Once ``overridden_by`` is set
    the effective status is ERROR no matter how ``base`` moves afterwards.
    """

    base: RunStatus = RunStatus.RUNNING
    overridden_by: Optional[str] = None

    @property
    def effective(self) -> RunStatus:
        if self.overridden_by is not None:
            return RunStatus.ERROR
        return self.base

    @property
    def is_overridden(self) -> bool:
        return self.overridden_by is not None

    def with_base(self, status: RunStatus) -> "RunStatusState":
        return replace(self, base=status)

    def override(self, reason: str) -> "RunStatusState":
        # The first reason wins; later overrides do not rewrite it.
        if self.overridden_by is not None:
            return self
        return replace(self, overridden_by=reason)


@dataclass(frozen=True)
class RunViewState:
    """Immutable snapshot of the run view."""

    tasks: TaskRoster = field(default_factory=TaskRoster)
    selected_index: int = 0
    status: RunStatusState = field(default_factory=RunStatusState)
    current_iteration: int = 0
    output_buffer: str = ""
    elapsed_seconds: int = 0

    @property
    def run_status(self) -> RunStatus:
        """Effective run status, ERROR once the sticky flag is set."""
        return self.status.effective

    @property
    def has_error(self) -> bool:
        return self.status.is_overridden

    @property
    def selected_task(self) -> Optional[TaskItem]:
        if 0 <= self.selected_index < len(self.tasks):
            return self.tasks[self.selected_index]
        return None

    @property
    def total_tasks(self) -> int:
        return len(self.tasks)

    @property
    def completed_tasks(self) -> int:
        return sum(1 for t in self.tasks if t.status == TaskStatus.DONE)

    @property
    def progress_percent(self) -> int:
        """Share of done tasks, rounded to a whole percent."""
        if not self.tasks:
            return 0
        return round(self.completed_tasks / self.total_tasks * 100)


def clamp_index(index: int, count: int) -> int:
    """Clamp a selection index into ``[0, max(1, count))``."""
    return max(0, min(index, max(1, count) - 1))
