# ============================================================================
# FILE: src/thermal_log_ocr/validators/hallucination_detector.py
# ============================================================================
"""
Anti-Hallucination Detector

Flags values that OCR post-processing likely fabricated rather than read:
1. Perfect sequences: values stepping in an exact arithmetic progression,
   within one reading and per field across hour columns
2. Empty cells with content: a value attributed to a cell the image shows
   as blank
3. Confidence inconsistency: high confidence on suspicious content
4. Spatial misalignment: a value whose token sits outside its hour column

Without emptiness data in the geometry, cells written off as "-" or "N/A"
in the column text stand in for blank cells.

Round numbers are reported separately; the validation pipeline turns them
into warnings rather than flags.

Detection never changes the reading; filter_reading() returns a copy
without the flagged fields.
"""

import re
import logging
import statistics
from dataclasses import replace
from typing import Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

from ..constants import ROUND_NUMBER_PATTERNS
from ..core.bbox_utils import (
    bbox_center,
    column_band,
    find_value_token,
    header_boxes,
    validate_bbox,
)
from ..core.config import LogParsingConfig
from ..core.context.enums import FieldId, HallucinationType
from ..core.context.field_match import FieldMatch
from ..core.context.geometry import SourceGeometry
from ..core.context.hourly_reading import ColumnData, HourlyReading
from ..core.context.validation import HallucinationFlag
from ..utils.text_normalizer import parse_hour_label

logger = logging.getLogger(__name__)

ROUND_NUMBER_REGEXES = [re.compile(p) for p in ROUND_NUMBER_PATTERNS]

Columns = Union[Mapping[str, ColumnData], Iterable[ColumnData]]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_perfect_sequence(
    values: Sequence,
    min_length: int = 3,
    variance_threshold: float = 1.0,
) -> bool:
    """
    Whether values step by an (almost) constant non-zero amount.

    Args:
        values: Ordered values; non-numeric entries are skipped
        min_length: Minimum number of numeric values
        variance_threshold: Population variance of successive differences
            below which the progression is considered too perfect

    Returns:
        True for a suspicious progression. The values must rise or fall
        strictly at every step; repeated values and readings jittering
        around a level are not progressions.
    """
    numbers = [float(v) for v in values if _is_number(v)]
    if len(numbers) < min_length:
        return False

    diffs = [b - a for a, b in zip(numbers, numbers[1:])]
    if not (all(d > 0 for d in diffs) or all(d < 0 for d in diffs)):
        return False
    return statistics.pvariance(diffs) < variance_threshold


def round_number_text(value) -> Optional[str]:
    """Digits of an integral value, or None for fractional/non-numeric values."""
    if not _is_number(value):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    return str(value)


def is_round_number(value) -> bool:
    text = round_number_text(value)
    if text is None:
        return False
    return any(regex.match(text) for regex in ROUND_NUMBER_REGEXES)


def _ordered_columns(columns: Optional[Columns]) -> List[ColumnData]:
    if not columns:
        return []
    if isinstance(columns, Mapping):
        columns = columns.values()
    return sorted(columns, key=lambda c: c.hour_label)


def _marked_empty_cells(reading: HourlyReading, columns: Optional[Columns]) -> Optional[SourceGeometry]:
    """Blank-cell markers of the reading's own column, as token geometry."""
    for column in _ordered_columns(columns):
        if column.hour_label == reading.inspection_time and column.empty_cells:
            return SourceGeometry(tokens=column.empty_cells)
    return None


class AntiHallucinationDetector:
    """
    Detects likely fabricated values in an hourly reading.

    Stateless apart from its configuration; safe to share between threads.
    """

    def __init__(self, config: Optional[LogParsingConfig] = None):
        self.config = config or LogParsingConfig.standard()

    def detect(
        self,
        reading: HourlyReading,
        columns: Optional[Columns] = None,
        geometry: Optional[SourceGeometry] = None,
    ) -> List[HallucinationFlag]:
        """
        Run every hallucination check.

        Args:
            reading: Reading to inspect
            columns: Extracted data of all hour columns on the sheet
            geometry: Optional OCR token geometry

        Returns:
            List of HallucinationFlag (empty when nothing is suspicious)
        """
        flags: List[HallucinationFlag] = []

        flags.extend(self.check_reading_sequence(reading))
        flags.extend(self.check_column_sequences(reading, columns))

        empty_fields: Set[FieldId] = set()
        emptiness = geometry
        if emptiness is None or not emptiness.has_emptiness:
            emptiness = _marked_empty_cells(reading, columns)
        if emptiness is not None:
            empty_flags = self.check_empty_cells(reading, emptiness)
            empty_fields = {FieldId(f.affected_field) for f in empty_flags}
            flags.extend(empty_flags)

        flags.extend(self.check_confidence_consistency(reading, empty_fields))

        if geometry is not None and geometry.has_boxes:
            flags.extend(self.check_spatial_alignment(reading, geometry))

        if flags:
            logger.info(
                f"{len(flags)} hallucination flag(s) for {reading.inspection_time}: "
                f"{[f.type.value for f in flags]}"
            )
        return flags

    # ------------------------------------------------------------------
    # Sequences
    # ------------------------------------------------------------------

    def _sequence_is_perfect(self, values: Sequence) -> bool:
        return is_perfect_sequence(
            values,
            min_length=self.config.min_sequence_length,
            variance_threshold=self.config.sequence_variance_threshold,
        )

    def check_reading_sequence(self, reading: HourlyReading) -> List[HallucinationFlag]:
        """Field values of one reading, in registry order."""
        matches = sorted(reading.field_matches, key=lambda m: self.config.field_order(m.name))
        values = [m.value for m in matches if m.is_numeric]

        if not self._sequence_is_perfect(values):
            return []

        return [HallucinationFlag(
            type=HallucinationType.PATTERN_ANOMALY,
            description=f"Field values follow a perfect progression: {values}",
            hour_label=reading.inspection_time,
            values=values,
        )]

    def check_column_sequences(
        self,
        reading: HourlyReading,
        columns: Optional[Columns],
    ) -> List[HallucinationFlag]:
        """Each field of the reading across all hour columns, in hour order."""
        ordered = _ordered_columns(columns)
        if len(ordered) < self.config.min_sequence_length:
            return []

        flags = []
        for match in reading.field_matches:
            pattern = self.config.pattern_for(match.name)
            if pattern is not None and not pattern.expects_variation:
                continue

            series = [c.value_of(match.name) for c in ordered]
            values = [v for v in series if _is_number(v)]
            if self._sequence_is_perfect(values):
                hours = [c.hour_label for c in ordered if _is_number(c.value_of(match.name))]
                flags.append(HallucinationFlag(
                    type=HallucinationType.PATTERN_ANOMALY,
                    description=(
                        f"{match.name.value} steps evenly across hours "
                        f"{hours[0]}-{hours[-1]}: {values}"
                    ),
                    affected_field=match.name.value,
                    hour_label=reading.inspection_time,
                    values=values,
                ))
        return flags

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def check_empty_cells(
        self,
        reading: HourlyReading,
        geometry: SourceGeometry,
    ) -> List[HallucinationFlag]:
        """Values attributed to cells the recognizer saw as blank."""
        label = reading.inspection_time
        empties = [t for t in geometry.empty_tokens() if parse_hour_label(t.hour_label) == label]

        flags = []
        for match in reading.field_matches:
            for token in empties:
                same_field = token.field_name == match.name.value
                same_line = token.field_name is None and token.line is not None and token.line == match.line
                if same_field or same_line:
                    flags.append(HallucinationFlag(
                        type=HallucinationType.EMPTY_CELL_WITH_CONTENT,
                        description=f"{match.name.value}={match.value} read from an empty cell",
                        affected_field=match.name.value,
                        hour_label=label,
                        values=(match.value,),
                    ))
                    break
        return flags

    def check_spatial_alignment(
        self,
        reading: HourlyReading,
        geometry: SourceGeometry,
    ) -> List[HallucinationFlag]:
        """Value tokens whose centre falls outside the hour column band."""
        label = reading.inspection_time
        band = column_band(header_boxes(geometry.tokens), label)
        if band is None:
            return []

        left, right = band
        slack = (right - left) * self.config.spatial_tolerance

        flags = []
        for match in reading.field_matches:
            token = find_value_token(
                geometry.tokens,
                match.raw_match,
                hour_label=label,
                field_name=match.name.value,
                line=match.line,
                band=band,
            )
            if token is None or not validate_bbox(token.bbox):
                continue

            x_center, _ = bbox_center(token.bbox)
            if x_center < left - slack or x_center > right + slack:
                flags.append(HallucinationFlag(
                    type=HallucinationType.SPATIAL_MISALIGNMENT,
                    description=(
                        f"{match.name.value}={match.value} sits at x={x_center:.1f}, "
                        f"outside column {label} ({left:.1f}-{right:.1f})"
                    ),
                    affected_field=match.name.value,
                    hour_label=label,
                    values=(match.value,),
                ))
        return flags

    # ------------------------------------------------------------------
    # Confidence
    # ------------------------------------------------------------------

    def _suspicion(self, match: FieldMatch, empty_fields: Set[FieldId]) -> Optional[str]:
        pattern = self.config.pattern_for(match.name)
        if match.name in empty_fields:
            return "value read from an empty cell"
        if pattern is not None and pattern.has_range and match.is_numeric \
                and not pattern.is_in_expected_range(match.value):
            return f"value outside expected range {pattern.format_range()}"
        if match.validation.errors:
            return "; ".join(match.validation.errors)
        return None

    def check_confidence_consistency(
        self,
        reading: HourlyReading,
        empty_fields: Optional[Set[FieldId]] = None,
    ) -> List[HallucinationFlag]:
        """High confidence reported on content that should not be trusted."""
        empty_fields = empty_fields or set()
        flags = []
        for match in reading.field_matches:
            if match.confidence < self.config.high_confidence_threshold:
                continue
            reason = self._suspicion(match, empty_fields)
            if reason:
                flags.append(HallucinationFlag(
                    type=HallucinationType.CONFIDENCE_INCONSISTENCY,
                    description=(
                        f"{match.name.value}={match.value} has confidence "
                        f"{match.confidence:.2f} but {reason}"
                    ),
                    affected_field=match.name.value,
                    hour_label=reading.inspection_time,
                    values=(match.value,),
                ))
        return flags

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def filter_reading(
        self,
        reading: HourlyReading,
        flags: Iterable[HallucinationFlag],
        strict_mode: bool = True,
    ) -> HourlyReading:
        """
        Copy of the reading without the fields hallucination flags point at.

        Flags that name no field (a whole-reading progression) drop nothing.
        In strict mode unflagged fields below filter_min_confidence are
        dropped too.

        Args:
            reading: Reading the flags were raised on
            flags: Output of detect()
            strict_mode: Also drop low-confidence fields

        Returns:
            New HourlyReading; the input is left untouched
        """
        affected = {f.affected_field for f in flags if f.affected_field}

        kept = []
        for match in reading.field_matches:
            if match.name.value in affected:
                logger.info(f"Filtering out flagged field {match.name.value}={match.value}")
                continue
            if strict_mode and match.confidence < self.config.filter_min_confidence:
                logger.info(
                    f"Filtering out low confidence field {match.name.value} ({match.confidence:.2f})"
                )
                continue
            kept.append(match)

        return replace(reading, field_matches=tuple(kept))

    # ------------------------------------------------------------------
    # Round numbers
    # ------------------------------------------------------------------

    def find_round_numbers(self, reading: HourlyReading) -> List[Tuple[FieldId, object]]:
        """(field, value) pairs whose value looks rounded off."""
        return [
            (match.name, match.value)
            for match in reading.field_matches
            if is_round_number(match.value)
        ]


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def detect_hallucinations(
    reading: HourlyReading,
    columns: Optional[Columns] = None,
    geometry: Optional[SourceGeometry] = None,
    config: Optional[LogParsingConfig] = None,
) -> List[HallucinationFlag]:
    """
    Quick hallucination check.

    Args:
        reading: Reading to inspect
        columns: Optional data of all hour columns
        geometry: Optional OCR token geometry
        config: Optional parsing configuration

    Returns:
        List of HallucinationFlag
    """
    detector = AntiHallucinationDetector(config)
    return detector.detect(reading, columns, geometry)
