# ============================================================================
# src/thermal_log_ocr/core/context/geometry.py
# ============================================================================
"""
Positional types
- Hour label positions in normalized text
- Column bounds and the text region under a header
- Optional OCR token geometry supplied by the recognizer
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

BBox = Tuple[float, float, float, float]

@dataclass(frozen=True)
class TextPosition:
    line: int
    column: int
    absolute_position: int
    confidence: float
    length: int = 5
    label: str = ""  # normalized HH:MM

    @property
    def end_column(self) -> int:
        return self.column + self.length

    @property
    def center(self) -> float:
        return self.column + self.length / 2

@dataclass(frozen=True)
class ColumnBounds:
    start: int
    end: int  # exclusive

    @property
    def width(self) -> int:
        return max(0, self.end - self.start)

    def contains(self, column: int) -> bool:
        return self.start <= column < self.end

@dataclass(frozen=True)
class RegionLine:
    """One line of a column region; text outside the column is blanked."""
    line_index: int        # line number in the normalized text
    absolute_offset: int   # offset of the line start in the normalized text
    text: str

@dataclass(frozen=True)
class ColumnRegion:
    """Text belonging to one hour column, hour labels blanked out."""
    header_line: int
    bounds: ColumnBounds
    lines: Tuple[RegionLine, ...] = ()
    source_lines: Tuple[str, ...] = ()  # full normalized lines, labels blanked

    @property
    def text(self) -> str:
        return "\n".join(line.text.strip() for line in self.lines)

    def source_line(self, index: int) -> str:
        if 0 <= index < len(self.source_lines):
            return self.source_lines[index]
        return ""

@dataclass(frozen=True)
class OcrToken:
    text: str
    bbox: Optional[BBox] = None
    line: Optional[int] = None
    hour_label: Optional[str] = None   # column the recognizer attributed the token to
    field_name: Optional[str] = None   # row the recognizer attributed the token to
    is_empty: bool = False             # cell judged blank on the image
    confidence: Optional[float] = None

@dataclass(frozen=True)
class SourceGeometry:
    tokens: Tuple[OcrToken, ...] = ()
    expected_bounds: Dict[str, BBox] = field(default_factory=dict)
    image_width: Optional[float] = None
    image_height: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "tokens", tuple(self.tokens))

    @property
    def has_boxes(self) -> bool:
        return any(token.bbox is not None for token in self.tokens)

    @property
    def has_emptiness(self) -> bool:
        return any(token.is_empty for token in self.tokens)

    def empty_tokens(self) -> Tuple[OcrToken, ...]:
        return tuple(token for token in self.tokens if token.is_empty)
