"""Segmentation of agent output into prose lines and fenced code blocks.

Agent output is free-form text that often contains Markdown code fences.
``segment_output`` splits it so renderers can style code apart from prose.

The scan is a two-state automaton over lines:

    PROSE --open fence--> CODE --close fence--> PROSE
    CODE  --end of input--> flush accumulated lines as a code block

An unterminated fence therefore never drops content.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

DEFAULT_LANGUAGE = "text"
FENCE = "```"

_FENCE_OPEN = re.compile(r"^```(\w*)$")


@dataclass(frozen=True)
class ProseLine:
    """A single line of prose, possibly empty."""

    text: str


@dataclass(frozen=True)
class CodeBlock:
    """Content of one fenced code block."""

    language: str
    content: str


OutputSegment = Union[ProseLine, CodeBlock]


class _ScanMode(Enum):
    PROSE = "prose"
    CODE = "code"


class OutputSegmenter:
    """Line-fed scanner producing output segments.

    Example:
        segmenter = OutputSegmenter()
        for line in text.split("\\n"):
            segmenter.feed_line(line)
        segments = segmenter.finish()
    """

    def __init__(self):
        self._mode = _ScanMode.PROSE
        self._language = DEFAULT_LANGUAGE
        self._buffer: list[str] = []
        self._segments: list[OutputSegment] = []

    @property
    def in_code_block(self) -> bool:
        return self._mode is _ScanMode.CODE

    def feed_line(self, line: str) -> None:
        """Consume one line of output."""
        if self._mode is _ScanMode.PROSE:
            language = fence_language(line)
            if language is not None:
                self._mode = _ScanMode.CODE
                self._language = language
                self._buffer = []
            else:
                self._segments.append(ProseLine(line))
            return

        if line == FENCE:
            self._flush_code()
        else:
            self._buffer.append(line)

    def finish(self) -> list[OutputSegment]:
        """End the scan and return all segments in order."""
        if self._mode is _ScanMode.CODE and self._buffer:
            self._flush_code()
        self._mode = _ScanMode.PROSE
        self._buffer = []
        return list(self._segments)

    def _flush_code(self) -> None:
        self._segments.append(CodeBlock(language=self._language, content="\n".join(self._buffer)))
        self._mode = _ScanMode.PROSE
        self._language = DEFAULT_LANGUAGE
        self._buffer = []


def fence_language(line: str) -> Optional[str]:
    """Return the language of an opening fence line, or None for other lines."""
    match = _FENCE_OPEN.match(line)
    if match is None:
        return None
    return match.group(1) or DEFAULT_LANGUAGE


def segment_output(text: str) -> list[OutputSegment]:
    """
    Split agent output into prose lines and code blocks.

    Args:
        text: Raw agent output

    Returns:
        Segments in output order
    """
    segmenter = OutputSegmenter()
    for line in text.split("\n"):
        segmenter.feed_line(line)
    return segmenter.finish()


def format_output_path(iteration: int, task_id: str, output_dir: str) -> str:
    """Path of the persisted output file for an iteration.

    Purely textual; the file system is not consulted.
    """
    return f"{output_dir}/iteration-{iteration:03d}-{task_id}.md"
