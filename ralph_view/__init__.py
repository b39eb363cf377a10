"""Ralph run view.

Live status projection and iteration inspection for the Ralph agent loop.
"""

from .ui import ViewStateProjector, build_timeline, format_output_path, segment_output

__version__ = "0.1.0"

__all__ = [
    "ViewStateProjector",
    "build_timeline",
    "segment_output",
    "format_output_path",
    "__version__",
]
