"""UI module for run monitoring and iteration inspection."""

import os
import sys
from typing import Optional

from ralph_view.config import ViewConfig, get_config
from ralph_view.ui.components import (
    format_elapsed_time,
    render_iteration_detail,
    render_output_segments,
    render_run_view,
)
from ralph_view.ui.display import PlaintextDisplay, RunDisplay
from ralph_view.ui.input_manager import RunKeyHandler
from ralph_view.ui.output_segments import (
    CodeBlock,
    OutputSegment,
    OutputSegmenter,
    ProseLine,
    format_output_path,
    segment_output,
)
from ralph_view.ui.projector import ViewStateProjector, fold_event, resolve_run_status
from ralph_view.ui.state_adapter import (
    RunStatus,
    RunStatusState,
    RunViewState,
    TaskItem,
    TaskRoster,
    TaskStatus,
)
from ralph_view.ui.timeline import (
    TimelineEvent,
    TimelineEventKind,
    build_timeline,
    format_timestamp,
)


# Variables set by CI runners, where a full-screen display cannot be drawn
CI_ENV_VARS = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "CIRCLECI",
    "JENKINS_URL",
    "BUILDKITE",
    "TRAVIS",
    "TF_BUILD",
)


def is_interactive(config: Optional[ViewConfig] = None) -> bool:
    """
    Decide whether the live view can be shown.

    Args:
        config: View configuration; its ``plain_output`` flag forces line output

    Returns:
        False under CI, when plain output is configured or stdout is not a
        terminal; True otherwise
    """
    config = config or get_config()
    if config.plain_output:
        return False
    if any(os.environ.get(var) for var in CI_ENV_VARS):
        return False
    return sys.stdout.isatty()


def create_display(
    projector: ViewStateProjector,
    interactive: Optional[bool] = None,
    config: Optional[ViewConfig] = None,
) -> "PlaintextDisplay | RunDisplay":
    """
    Create appropriate display based on environment.

    Args:
        projector: Projector providing snapshots
        interactive: Force interactive mode (auto-detect if None)
        config: View configuration

    Returns:
        Display instance
    """
    if interactive is None:
        interactive = is_interactive(config)

    if interactive:
        return RunDisplay(projector, config=config)
    else:
        return PlaintextDisplay(projector, config=config)


__all__ = [
    # Display creation
    "create_display",
    "is_interactive",
    "CI_ENV_VARS",
    # Display classes
    "PlaintextDisplay",
    "RunDisplay",
    "RunKeyHandler",
    # Projection
    "ViewStateProjector",
    "fold_event",
    "resolve_run_status",
    # State
    "RunStatus",
    "RunStatusState",
    "RunViewState",
    "TaskItem",
    "TaskRoster",
    "TaskStatus",
    # Iteration inspection
    "TimelineEvent",
    "TimelineEventKind",
    "build_timeline",
    "format_timestamp",
    "CodeBlock",
    "OutputSegment",
    "OutputSegmenter",
    "ProseLine",
    "segment_output",
    "format_output_path",
    # Rendering
    "format_elapsed_time",
    "render_iteration_detail",
    "render_output_segments",
    "render_run_view",
]
