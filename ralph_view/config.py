"""Configuration for the run view.

Values come from environment variables; every setting has a default.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Singleton config instance
_config: Optional["ViewConfig"] = None


@dataclass
class ViewConfig:
    """Run view configuration."""

    tick_interval_seconds: float = 1.0
    output_dir: str = ".ralph-output"
    epic_name: str = "Ralph"
    tracker_name: str = "beads"
    compact_width: int = 80  # Below this width panels are stacked
    plain_output: bool = False  # Line output instead of the live view

    @classmethod
    def from_env(cls) -> "ViewConfig":
        """Create config from environment variables."""
        return cls(
            tick_interval_seconds=float(os.environ.get("RALPH_TUI_TICK_INTERVAL", "1.0")),
            output_dir=os.environ.get("RALPH_TUI_OUTPUT_DIR", ".ralph-output"),
            epic_name=os.environ.get("RALPH_TUI_EPIC_NAME", "Ralph"),
            tracker_name=os.environ.get("RALPH_TUI_TRACKER", "beads"),
            compact_width=int(os.environ.get("RALPH_TUI_COMPACT_WIDTH", "80")),
            plain_output=bool(
                os.environ.get("RALPH_PLAIN_OUTPUT") or os.environ.get("NO_COLOR")
            ),
        )


def get_config() -> ViewConfig:
    """Get the view configuration singleton.

    Returns:
        ViewConfig instance
    """
    global _config
    if _config is None:
        _config = ViewConfig.from_env()
        logger.debug(
            f"View config loaded: tick={_config.tick_interval_seconds}s, "
            f"output_dir={_config.output_dir}"
        )
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next lookup re-reads the environment."""
    global _config
    _config = None
