"""Operator key handling for the run view.

Translates key names from the terminal layer into projector navigation
and engine commands. Engine commands are fire-and-forget; their effect
shows up later as engine events.
"""

import logging
from collections.abc import Callable
from typing import Optional

from ..engine.types import ExecutionEngine
from .projector import ViewStateProjector
from .state_adapter import RunStatus, TaskItem

logger = logging.getLogger(__name__)


class RunKeyHandler:
    """Maps operator keys to run view actions."""

    QUIT_KEYS = frozenset({"q", "escape"})
    UP_KEYS = frozenset({"up", "k"})
    DOWN_KEYS = frozenset({"down", "j"})
    PAUSE_KEYS = frozenset({"p"})
    STOP_KEYS = frozenset({"c"})
    DRILL_DOWN_KEYS = frozenset({"return", "enter"})

    def __init__(
        self,
        engine: ExecutionEngine,
        projector: ViewStateProjector,
        on_quit: Optional[Callable[[], None]] = None,
        on_drill_down: Optional[Callable[[TaskItem], None]] = None,
    ):
        """Initialize the key handler.

        Args:
            engine: Engine receiving pause/resume/stop commands
            projector: Projector owning the selection cursor
            on_quit: Called when the operator asks to quit
            on_drill_down: Called with the selected task on enter
        """
        self._engine = engine
        self._projector = projector
        self._on_quit = on_quit
        self._on_drill_down = on_drill_down

    def handle_key(self, name: str) -> bool:
        """Handle one key press.

        Args:
            name: Key name as reported by the terminal layer

        Returns:
            True if the key is bound to an action
        """
        if name in self.QUIT_KEYS:
            if self._on_quit is not None:
                self._on_quit()
        elif name in self.UP_KEYS:
            self._projector.select_previous()
        elif name in self.DOWN_KEYS:
            self._projector.select_next()
        elif name in self.PAUSE_KEYS:
            self._toggle_pause()
        elif name in self.STOP_KEYS:
            logger.info("Stop requested by operator")
            self._engine.stop()
        elif name in self.DRILL_DOWN_KEYS:
            task = self._projector.snapshot.selected_task
            if task is not None and self._on_drill_down is not None:
                self._on_drill_down(task)
        else:
            return False
        return True

    def _toggle_pause(self) -> None:
        base = self._projector.snapshot.status.base
        if base == RunStatus.RUNNING:
            logger.info("Pause requested by operator")
            self._engine.pause()
        elif base == RunStatus.PAUSED:
            logger.info("Resume requested by operator")
            self._engine.resume()
