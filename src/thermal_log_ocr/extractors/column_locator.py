# ============================================================================
# src/thermal_log_ocr/extractors/column_locator.py
# ============================================================================
"""
Hour column location in OCR text.

Steps:
1. Normalize the OCR text (whitespace, glyphs, hour separators)
2. Find every hour label and keep the best occurrence per label
3. Resolve the requested hour exactly, or fuzzily within the same hour
4. Derive the column's character bounds from its neighbouring headers
5. Cut the column region out of the lines below the header

Positions are character offsets in the normalized text.
"""

import re
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Union

from ..core.config import LogParsingConfig
from ..core.context.geometry import ColumnBounds, ColumnRegion, RegionLine, TextPosition
from ..utils.exceptions import InvalidTargetHourError
from ..utils.text_normalizer import (
    find_hour_tokens,
    is_clean_label,
    is_header_line,
    normalize_ocr_text,
    parse_hour_label,
)

logger = logging.getLogger(__name__)

BASE_LABEL_CONFIDENCE = 0.7
CLEAN_LABEL_BONUS = 0.2
LINE_START_BONUS = 0.1

Positions = Union[Mapping[str, TextPosition], Iterable[TextPosition]]


def hour_similarity(label_a: str, label_b: str) -> float:
    """
    Similarity of two HH:MM labels.

    One hour apart scores 0.6, so only labels within the same hour can
    clear a 0.8 threshold.
    """
    hour_a, minute_a = (int(part) for part in label_a.split(":"))
    hour_b, minute_b = (int(part) for part in label_b.split(":"))
    return 1.0 - (abs(hour_a - hour_b) * 0.4 + abs(minute_a - minute_b) * 0.01)


def require_target_hour(target_hour: Optional[str]) -> str:
    """Reject a null or empty target hour."""
    if target_hour is None or not str(target_hour).strip():
        raise InvalidTargetHourError("Target hour must not be empty")
    return str(target_hour).strip()


def _as_list(positions: Positions) -> List[TextPosition]:
    if isinstance(positions, Mapping):
        return list(positions.values())
    return list(positions)


class ColumnLocator:
    """
    Locates hour-label columns in normalized OCR text.

    Stateless apart from its configuration; safe to share between threads.
    """

    def __init__(
        self,
        config: Optional[LogParsingConfig] = None,
        known_hour_labels: Optional[Iterable[str]] = None,
    ):
        """
        Initialize locator.

        Args:
            config: Parsing configuration (standard registry if omitted)
            known_hour_labels: Hour labels printed on the sheet; labels
                outside this set are ignored and "HHMM" headers are accepted
        """
        self.config = config or LogParsingConfig.standard()
        self.known_hour_labels = None
        if known_hour_labels is not None:
            labels = (parse_hour_label(label) for label in known_hour_labels)
            self.known_hour_labels = frozenset(label for label in labels if label)

    @property
    def allow_digit_runs(self) -> bool:
        return bool(self.known_hour_labels)

    def is_known(self, label: str) -> bool:
        return self.known_hour_labels is None or label in self.known_hour_labels

    def normalize(self, text: Optional[str]) -> str:
        """Normalize raw OCR text."""
        return normalize_ocr_text(
            text,
            preserve_layout=self.config.preserve_layout,
            allow_digit_runs=self.allow_digit_runs,
        )

    def find_all(self, normalized_text: str) -> List[TextPosition]:
        """
        Every hour label occurrence in normalized text, in reading order.

        Colon labels count anywhere; "HHMM" runs only on header lines of a
        sheet with known hour labels. The known-label filter is not applied
        here so every time-like token can still be blanked from values.
        """
        occurrences: List[TextPosition] = []
        offset = 0

        for line_index, line in enumerate(normalized_text.split("\n")):
            allow_runs = self.allow_digit_runs and is_header_line(line, True)
            indent = len(line) - len(line.lstrip(" "))

            for token in find_hour_tokens(line, allow_digit_runs=allow_runs):
                if token.form == "separated":
                    # Only header lines are rewritten to colons
                    continue

                confidence = BASE_LABEL_CONFIDENCE
                if is_clean_label(token.text):
                    confidence += CLEAN_LABEL_BONUS
                if token.start == indent:
                    confidence += LINE_START_BONUS

                occurrences.append(TextPosition(
                    line=line_index,
                    column=token.start,
                    absolute_position=offset + token.start,
                    confidence=round(min(1.0, confidence), 4),
                    length=token.end - token.start,
                    label=token.label,
                ))

            offset += len(line) + 1

        return occurrences

    def locate(self, text: str, normalized: bool = False) -> Dict[str, TextPosition]:
        """
        Locate hour labels.

        Args:
            text: OCR text
            normalized: Text is already normalized

        Returns:
            Hour label -> highest-confidence position, in first-seen order
        """
        if not normalized:
            text = self.normalize(text)

        positions: Dict[str, TextPosition] = {}
        for occurrence in self.find_all(text):
            if not self.is_known(occurrence.label):
                continue
            current = positions.get(occurrence.label)
            if current is None or occurrence.confidence > current.confidence:
                positions[occurrence.label] = occurrence

        logger.debug(f"Located {len(positions)} hour labels: {list(positions)}")
        return positions

    def resolve(
        self,
        positions: Mapping[str, TextPosition],
        target_hour: str,
    ) -> Optional[TextPosition]:
        """
        Resolve the target hour to a located position.

        Args:
            positions: Output of locate()
            target_hour: Requested hour ("02:00", "2:00", "0200")

        Returns:
            Position of the matching column, or None when no label matches
            exactly or scores above the fuzzy threshold

        Raises:
            InvalidTargetHourError: If target_hour is null or empty
        """
        target = parse_hour_label(require_target_hour(target_hour))
        if target is None:
            logger.warning(f"Target hour {target_hour!r} is not a valid hour label")
            return None

        if target in positions:
            return positions[target]

        best: Optional[TextPosition] = None
        best_score = 0.0
        for label, position in positions.items():
            score = hour_similarity(target, label)
            if score > best_score:
                best, best_score = position, score

        if best is not None and best_score > self.config.fuzzy_match_threshold:
            logger.info(f"Fuzzy matched target hour {target} to {best.label} (score {best_score:.2f})")
            return best

        logger.info(f"Target hour {target} not found among {list(positions)}")
        return None

    def column_bounds(self, target: TextPosition, positions: Positions) -> ColumnBounds:
        """
        Character bounds of the target column.

        Neighbours are the other hour labels on the header's own line. Each
        boundary sits halfway between label centres; a side without a
        neighbour extends the default half width from the centre.
        """
        half_width = self.config.default_column_half_width
        centers = sorted({p.center for p in _as_list(positions) if p.line == target.line} | {target.center})
        index = centers.index(target.center)

        if index > 0:
            left = (centers[index - 1] + target.center) / 2
        else:
            left = max(0.0, target.center - half_width)

        if index < len(centers) - 1:
            right = (target.center + centers[index + 1]) / 2
        else:
            right = target.center + half_width

        return ColumnBounds(start=int(left), end=int(right))

    def column_region(
        self,
        normalized_text: str,
        target: TextPosition,
        bounds: ColumnBounds,
        occurrences: Optional[Iterable[TextPosition]] = None,
    ) -> ColumnRegion:
        """
        Text of the target column below its header.

        The region starts at the header line and ends before the next line
        carrying another hour label inside the bounds, or after the maximum
        number of rows. Hour labels are blanked; tokens whose centre lies
        outside the bounds are blanked, offsets are kept.

        Args:
            normalized_text: Normalized OCR text
            target: Resolved header position
            bounds: Column bounds from column_bounds()
            occurrences: All hour label occurrences (find_all())

        Returns:
            ColumnRegion
        """
        lines = normalized_text.split("\n")
        if occurrences is None:
            occurrences = self.find_all(normalized_text)
        occurrences = list(occurrences)

        masked = [list(line) for line in lines]
        for occurrence in occurrences:
            row = masked[occurrence.line]
            row[occurrence.column:occurrence.end_column] = [" "] * occurrence.length
        masked_lines = ["".join(row) for row in masked]

        line_starts = []
        offset = 0
        for line in lines:
            line_starts.append(offset)
            offset += len(line) + 1

        header = target.line
        last = min(len(lines) - 1, header + self.config.max_rows_below_header)
        region_lines = []

        for index in range(header, last + 1):
            if index > header and any(
                o.line == index and self.is_known(o.label) and bounds.contains(int(o.center))
                for o in occurrences
            ):
                break

            text = _column_text(masked_lines[index], bounds)
            if text.strip():
                region_lines.append(RegionLine(
                    line_index=index,
                    absolute_offset=line_starts[index],
                    text=text,
                ))

        return ColumnRegion(
            header_line=header,
            bounds=bounds,
            lines=tuple(region_lines),
            source_lines=tuple(masked_lines),
        )


def _column_text(line: str, bounds: ColumnBounds) -> str:
    """Blank every token whose centre falls outside the bounds."""
    chars = [" "] * len(line)
    for token in re.finditer(r"\S+", line):
        center = (token.start() + token.end() - 1) / 2
        if bounds.start <= center < bounds.end:
            chars[token.start():token.end()] = line[token.start():token.end()]
    return "".join(chars)


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def locate_hour_columns(
    ocr_text: str,
    known_hour_labels: Optional[Iterable[str]] = None,
    config: Optional[LogParsingConfig] = None,
) -> Dict[str, TextPosition]:
    """
    Quick lookup of hour label positions.

    Args:
        ocr_text: Raw OCR text
        known_hour_labels: Optional labels printed on the sheet
        config: Optional parsing configuration

    Returns:
        Hour label -> position
    """
    locator = ColumnLocator(config, known_hour_labels)
    return locator.locate(ocr_text)
