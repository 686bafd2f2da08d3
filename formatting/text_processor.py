"""
text_processor.py
-----------------
Converts the lightweight markup the topic model writes into Google Slides
text edits.

Markup:
  **text**       bold span (non-greedy, spans never nest)
  • text         main bullet, level 0 (line start)
    ◦ text       sub-bullet, level 1 (two spaces, line start)

Pipeline:
  raw string -> parse_markup -> segments -> compile_segments
             -> (flat text, bold ranges, bullet ranges) -> to_edit_operations
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import reduce
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

BOLD_PATTERN = re.compile(r"\*\*(.*?)\*\*")
BULLET_PATTERN = re.compile(r"^• (.*)$")
SUB_BULLET_PATTERN = re.compile(r"^  ◦ (.*)$")

BULLET_PRESETS = {
    0: "BULLET_DISC_CIRCLE_SQUARE",
    1: "BULLET_HOLLOW_CIRCLE_SQUARE",
}


# ==============================================================
# Types
# ==============================================================

@dataclass(frozen=True)
class TextSegment:
    """A run of text with uniform formatting. `level` only matters for bullets."""

    text: str
    is_bold: bool = False
    is_bullet: bool = False
    level: int = 0


@dataclass(frozen=True)
class BoldRange:
    start: int
    end: int


@dataclass(frozen=True)
class BulletRange:
    start: int
    end: int
    level: int


@dataclass(frozen=True)
class CompiledText:
    text: str
    bold_ranges: Tuple[BoldRange, ...]
    bullet_ranges: Tuple[BulletRange, ...]


def _fixed_range(start: int, end: int) -> Dict[str, Any]:
    return {"type": "FIXED_RANGE", "startIndex": start, "endIndex": end}


@dataclass(frozen=True)
class InsertText:
    object_id: str
    text: str

    def to_request(self) -> Dict[str, Any]:
        return {
            "insertText": {
                "objectId": self.object_id,
                "insertionIndex": 0,
                "text": self.text,
            }
        }


@dataclass(frozen=True)
class ApplyBoldStyle:
    object_id: str
    start: int
    end: int

    def to_request(self) -> Dict[str, Any]:
        return {
            "updateTextStyle": {
                "objectId": self.object_id,
                "style": {"bold": True},
                "textRange": _fixed_range(self.start, self.end),
                "fields": "bold",
            }
        }


@dataclass(frozen=True)
class ApplyBulletPreset:
    object_id: str
    start: int
    end: int
    level: int

    @property
    def preset(self) -> str:
        return BULLET_PRESETS.get(self.level, BULLET_PRESETS[0])

    def to_request(self) -> Dict[str, Any]:
        return {
            "createParagraphBullets": {
                "objectId": self.object_id,
                "textRange": _fixed_range(self.start, self.end),
                "bulletPreset": self.preset,
            }
        }


EditOperation = Union[InsertText, ApplyBoldStyle, ApplyBulletPreset]


# ==============================================================
# Markup Parser
# ==============================================================

def _parse_bold(text: str, is_bullet: bool, level: int) -> List[TextSegment]:
    """Split one line's content into plain and bold segments."""
    segments: List[TextSegment] = []
    last_end = 0

    for match in BOLD_PATTERN.finditer(text):
        if match.start() > last_end:
            segments.append(TextSegment(text[last_end:match.start()], False, is_bullet, level))
        segments.append(TextSegment(match.group(1), True, is_bullet, level))
        last_end = match.end()

    if last_end < len(text):
        segments.append(TextSegment(text[last_end:], False, is_bullet, level))

    return segments


def _classify_line(line: str) -> Tuple[str, bool, int]:
    """Return (content, is_bullet, level) for a single line."""
    sub_bullet = SUB_BULLET_PATTERN.match(line)
    if sub_bullet:
        return sub_bullet.group(1), True, 1
    bullet = BULLET_PATTERN.match(line)
    if bullet:
        return bullet.group(1), True, 0
    return line, False, 0


def parse_markup(raw: str) -> List[TextSegment]:
    """
    Convert markup text into an ordered list of formatted segments.

    Each line is classified as bullet / sub-bullet / plain first, then bold
    spans are extracted inside the remaining content. A bare newline segment
    separates consecutive lines; none follows the last line.

    Args:
        raw: Text possibly containing bold and bullet markup

    Returns:
        list[TextSegment]: Segments in source order (empty for "")
    """
    segments: List[TextSegment] = []
    lines = raw.split("\n")

    for index, line in enumerate(lines):
        content, is_bullet, level = _classify_line(line)
        segments.extend(_parse_bold(content, is_bullet, level))
        if index < len(lines) - 1:
            segments.append(TextSegment("\n"))

    return segments


# ==============================================================
# Operation Compiler + Emitter
# ==============================================================

class _FoldState(NamedTuple):
    cursor: int
    pieces: Tuple[str, ...]
    open_run: Optional[Tuple[int, int]]  # (start, level)
    bold_ranges: Tuple[BoldRange, ...]
    bullet_ranges: Tuple[BulletRange, ...]


_INITIAL_STATE = _FoldState(0, (), None, (), ())


def _step(state: _FoldState, segment: TextSegment) -> _FoldState:
    start = state.cursor
    end = start + len(segment.text)

    bold_ranges = state.bold_ranges
    if segment.is_bold:
        bold_ranges += (BoldRange(start, end),)

    open_run = state.open_run
    bullet_ranges = state.bullet_ranges
    if segment.is_bullet:
        if open_run is None:
            open_run = (start, segment.level)
    elif open_run is not None:
        bullet_ranges += (BulletRange(open_run[0], start, open_run[1]),)
        open_run = None

    return _FoldState(end, state.pieces + (segment.text,), open_run, bold_ranges, bullet_ranges)


def compile_segments(segments: Sequence[TextSegment]) -> CompiledText:
    """
    Flatten segments into one string and collect the style ranges over it.

    Offsets count characters (code points). Adjacent bold segments stay
    separate ranges. A bullet run keeps the level of its first segment and
    closes where the first non-bullet segment starts, or at the end of text.
    """
    final = reduce(_step, segments, _INITIAL_STATE)

    bullet_ranges = final.bullet_ranges
    if final.open_run is not None:
        start, level = final.open_run
        bullet_ranges += (BulletRange(start, final.cursor, level),)

    return CompiledText("".join(final.pieces), final.bold_ranges, bullet_ranges)


def to_edit_operations(segments: Sequence[TextSegment], target_object_id: str) -> List[EditOperation]:
    """
    Build the edit operations for one text container.

    Args:
        segments: Output of parse_markup
        target_object_id: Slides object the operations apply to (passed through)

    Returns:
        list: One InsertText, then ApplyBoldStyle per bold range, then
        ApplyBulletPreset per bullet range, each in discovery order
    """
    compiled = compile_segments(segments)

    operations: List[EditOperation] = [InsertText(target_object_id, compiled.text)]
    operations.extend(
        ApplyBoldStyle(target_object_id, r.start, r.end) for r in compiled.bold_ranges
    )
    operations.extend(
        ApplyBulletPreset(target_object_id, r.start, r.end, r.level) for r in compiled.bullet_ranges
    )
    return operations


def to_slides_requests(raw: str, object_id: str) -> List[Dict[str, Any]]:
    """Parse, compile and render markup straight into Slides batchUpdate requests."""
    return [op.to_request() for op in to_edit_operations(parse_markup(raw), object_id)]


# ==============================================================
# Plain-Text Reducer
# ==============================================================

def clean_text(raw: str) -> str:
    """Strip bold delimiters and bullet prefixes, keeping line breaks."""
    cleaned = BOLD_PATTERN.sub(r"\1", raw)
    return "\n".join(_classify_line(line)[0] for line in cleaned.split("\n"))
