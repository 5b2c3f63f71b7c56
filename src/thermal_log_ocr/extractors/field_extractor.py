# ============================================================================
# src/thermal_log_ocr/extractors/field_extractor.py
# ============================================================================
"""
Field extraction from one hour column.

Every field pattern is run over the column region. Each candidate value
is scored from six signals:
- pattern quality (does the text parse as the field's type)
- expected range
- spatial position relative to the hour header
- context (unit on the line, field alias nearby)
- distinctiveness (how often the value repeats in the column)
- OCR cleanliness of the matched text

The best candidate per field is kept when its confidence clears the
minimum threshold. With exclusive tokens, one piece of text can fill at
most one field; higher scoring (field, candidate) pairs claim text first.
"""

import re
import logging
from typing import Dict, List, Optional, Pattern

from ..constants import EMPTY_CELL_DASH_PATTERN, EMPTY_CELL_MARKER_PATTERN
from ..core.config import LogParsingConfig
from ..core.confidence import (
    CONTEXT,
    DISTINCTIVENESS,
    OCR_QUALITY,
    PATTERN_QUALITY,
    RANGE,
    SPATIAL,
    ConfidenceCalculator,
)
from ..core.context.enums import FieldId, FieldType
from ..core.context.field_match import FieldCandidate, FieldMatch, FieldValue, ScoredCandidate
from ..core.context.field_pattern import FieldPattern
from ..core.context.geometry import ColumnRegion, OcrToken, TextPosition
from ..validators.field_validator import validate_field

logger = logging.getLogger(__name__)

INTEGER_TYPES = (FieldType.FLOW_RATE, FieldType.TEMPERATURE, FieldType.TOTALIZER)
FLOAT_TYPES = (FieldType.PRESSURE, FieldType.CONCENTRATION)

NOISE_PATTERN = re.compile(r"[^\w\s.:\-]")
EMPTY_CELL_MARKER = re.compile(EMPTY_CELL_MARKER_PATTERN, re.IGNORECASE)
EMPTY_CELL_DASH = re.compile(EMPTY_CELL_DASH_PATTERN)


def parse_value(text: str, field_type: FieldType) -> FieldValue:
    """
    Parse captured text into the field's value type.

    Flow, temperature and totalizer values are integers (decimals are
    rounded); pressure and concentration are floats; generic numeric
    values are integers when possible. Time and text stay strings.

    Returns:
        Parsed value, or None when the text does not parse
    """
    text = (text or "").strip()
    if not text:
        return None

    if field_type in INTEGER_TYPES:
        cleaned = re.sub(r"[^\d.\-]", "", text)
        try:
            return int(cleaned)
        except ValueError:
            try:
                return int(round(float(cleaned)))
            except ValueError:
                return None

    if field_type in FLOAT_TYPES:
        cleaned = re.sub(r"[^\d.\-]", "", text)
        try:
            return float(cleaned)
        except ValueError:
            return None

    if field_type == FieldType.NUMERIC:
        try:
            return int(text)
        except ValueError:
            try:
                return float(text)
            except ValueError:
                return None

    return text


def _unit_pattern(unit: str) -> Optional[Pattern]:
    letters = re.sub(r"[^A-Za-z0-9]", "", unit or "")
    if not letters:
        return None
    return re.compile(rf"(?<![A-Za-z]){re.escape(letters)}(?![A-Za-z])", re.IGNORECASE)


def _alias_pattern(alias: str) -> Pattern:
    return re.compile(rf"(?<![a-z]){re.escape(alias)}(?![a-z])", re.IGNORECASE)


def _overlaps(a, b) -> bool:
    return a[0] == b[0] and a[1] < b[2] and b[1] < a[2]


class FieldExtractor:
    """
    Extracts field matches from a column region.

    Holds only compiled helpers derived from the configuration; safe to
    share between threads.
    """

    def __init__(self, config: Optional[LogParsingConfig] = None):
        self.config = config or LogParsingConfig.standard()
        self.calculator = ConfidenceCalculator(self.config.weights)
        self._unit_patterns = {p.name: _unit_pattern(p.unit) for p in self.config.field_patterns}
        self._alias_patterns = {
            p.name: [_alias_pattern(alias) for alias in p.aliases]
            for p in self.config.field_patterns
        }

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------

    def find_candidates(self, pattern: FieldPattern, region: ColumnRegion) -> List[FieldCandidate]:
        """All matches of one field pattern in the region, in document order."""
        candidates = []
        group = 1 if pattern.matcher.groups else 0

        for region_line in region.lines:
            for match in pattern.matcher.finditer(region_line.text):
                value = match.group(group)
                if not value or not value.strip():
                    continue
                column = match.start(group)
                candidates.append(FieldCandidate(
                    value=value,
                    line=region_line.line_index,
                    position=region_line.absolute_offset + column,
                    raw_match=match.group(0),
                    column=column,
                ))

        return candidates

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def _pattern_quality(self, pattern: FieldPattern, value_text: str, parsed: FieldValue) -> float:
        if not pattern.field_type.is_numeric:
            return 0.8
        if parsed is None:
            return 0.0
        if pattern.field_type in (FieldType.FLOW_RATE, FieldType.TEMPERATURE):
            return 0.7 if "." in value_text else 1.0
        return 0.9

    def _range_signal(self, pattern: FieldPattern, parsed: FieldValue) -> float:
        if not pattern.has_range or parsed is None or isinstance(parsed, str):
            return 0.0
        return 1.0 if pattern.is_in_expected_range(parsed) else -1.0

    def _spatial_signal(self, candidate: FieldCandidate, header_line: int) -> float:
        return 0.3 if candidate.line == header_line else 1.0

    def _alias_distance(self, pattern: FieldPattern, candidate: FieldCandidate, region: ColumnRegion) -> Optional[int]:
        """Line distance to the nearest alias inside the context window, or None."""
        aliases = self._alias_patterns.get(pattern.name, [])
        first = max(0, candidate.line - self.config.context_lines_before)
        last = candidate.line + self.config.context_lines_after

        distances = [
            abs(index - candidate.line)
            for index in range(first, last + 1)
            if any(alias.search(region.source_line(index)) for alias in aliases)
        ]
        return min(distances) if distances else None

    def _context_signal(
        self,
        pattern: FieldPattern,
        candidate: FieldCandidate,
        region: ColumnRegion,
        alias_distance: Optional[int] = None,
    ) -> float:
        score = 0.5

        unit_pattern = self._unit_patterns.get(pattern.name)
        if unit_pattern and unit_pattern.search(region.source_line(candidate.line)):
            score += 0.3

        if alias_distance is not None:
            score += 0.2

        return min(1.0, score)

    def _distinctiveness(self, candidate: FieldCandidate, region: ColumnRegion) -> float:
        token = re.compile(rf"(?<![\d.]){re.escape(candidate.value)}(?![\d.])")
        count = sum(len(token.findall(line.text)) for line in region.lines)

        if count <= 1:
            return 1.0
        elif count == 2:
            return 0.8
        elif count <= 4:
            return 0.6
        return 0.3

    def _ocr_quality(self, raw_match: str) -> float:
        score = 1.0
        if NOISE_PATTERN.search(raw_match):
            score -= 0.2
        if len(raw_match.strip()) < 2:
            score -= 0.3
        if "  " in raw_match:
            score -= 0.1
        return max(0.0, score)

    def score_candidate(
        self,
        pattern: FieldPattern,
        candidate: FieldCandidate,
        region: ColumnRegion,
        header_line: Optional[int] = None,
    ) -> ScoredCandidate:
        """
        Score one candidate.

        Returns:
            ScoredCandidate with clamped confidence, raw score and signals
        """
        if header_line is None:
            header_line = region.header_line
        parsed = parse_value(candidate.value, pattern.field_type)
        alias_distance = self._alias_distance(pattern, candidate, region)

        signals = {
            PATTERN_QUALITY: self._pattern_quality(pattern, candidate.value, parsed),
            RANGE: self._range_signal(pattern, parsed),
            SPATIAL: self._spatial_signal(candidate, header_line),
            CONTEXT: self._context_signal(pattern, candidate, region, alias_distance),
            DISTINCTIVENESS: self._distinctiveness(candidate, region),
            OCR_QUALITY: self._ocr_quality(candidate.raw_match),
        }
        raw_score = round(self.calculator.raw_score(signals), 6)

        return ScoredCandidate(
            field_name=pattern.name,
            candidate=candidate,
            confidence=self.calculator.score(signals),
            raw_score=raw_score,
            signals=signals,
            alias_distance=alias_distance,
        )

    def scores(
        self,
        region: ColumnRegion,
        time_position: Optional[TextPosition] = None,
    ) -> Dict[FieldId, List[ScoredCandidate]]:
        """Every scored candidate per field, in document order."""
        header_line = time_position.line if time_position else region.header_line
        return {
            pattern.name: [
                self.score_candidate(pattern, candidate, region, header_line)
                for candidate in self.find_candidates(pattern, region)
            ]
            for pattern in self.config.field_patterns
        }

    # ------------------------------------------------------------------
    # Empty cells
    # ------------------------------------------------------------------

    def empty_cells(self, region: ColumnRegion, hour_label: str) -> List[OcrToken]:
        """
        Cells of the column written off as blank ("-", "N/A").

        Each marked line yields a line token plus one token per field whose
        alias labels that line, in the shape the recognizer reports blank
        cells.
        """
        tokens = []
        for region_line in region.lines:
            if region_line.line_index == region.header_line:
                continue
            marker = EMPTY_CELL_MARKER.search(region_line.text) or EMPTY_CELL_DASH.match(region_line.text)
            if marker is None:
                continue

            text = marker.group(0).strip()
            tokens.append(OcrToken(text=text, line=region_line.line_index, hour_label=hour_label, is_empty=True))
            source = region.source_line(region_line.line_index)
            for pattern in self.config.field_patterns:
                if any(alias.search(source) for alias in self._alias_patterns[pattern.name]):
                    tokens.append(OcrToken(
                        text=text,
                        line=region_line.line_index,
                        hour_label=hour_label,
                        field_name=pattern.name.value,
                        is_empty=True,
                    ))

        if tokens:
            logger.debug(f"Column {hour_label} has {len(tokens)} blank-cell marker(s)")
        return tokens

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _select_independent(self, scored: Dict[FieldId, List[ScoredCandidate]]) -> Dict[FieldId, ScoredCandidate]:
        selected = {}
        for name, candidates in scored.items():
            best = None
            for candidate in candidates:
                rank = (-candidate.raw_score, candidate.alias_rank)
                if best is None or rank < (-best.raw_score, best.alias_rank):
                    best = candidate
            if best is not None and best.confidence >= self.config.min_confidence_threshold:
                selected[name] = best
        return selected

    def _select_exclusive(self, scored: Dict[FieldId, List[ScoredCandidate]]) -> Dict[FieldId, ScoredCandidate]:
        pairs = []
        for field_index, pattern in enumerate(self.config.field_patterns):
            for candidate_index, candidate in enumerate(scored.get(pattern.name, [])):
                if candidate.confidence >= self.config.min_confidence_threshold:
                    pairs.append((-candidate.raw_score, candidate.alias_rank, field_index, candidate_index, candidate))
        pairs.sort(key=lambda pair: pair[:4])

        selected = {}
        claimed = []
        for *_, candidate in pairs:
            if candidate.field_name in selected:
                continue
            span = candidate.candidate.span
            if any(_overlaps(span, other) for other in claimed):
                continue
            selected[candidate.field_name] = candidate
            claimed.append(span)
        return selected

    def extract(
        self,
        region: ColumnRegion,
        time_position: Optional[TextPosition] = None,
    ) -> List[FieldMatch]:
        """
        Extract field matches from a column region.

        Args:
            region: Column region from ColumnLocator.column_region()
            time_position: Resolved hour header position

        Returns:
            At most one FieldMatch per field, in registry order
        """
        scored = self.scores(region, time_position)

        if self.config.exclusive_tokens:
            selected = self._select_exclusive(scored)
        else:
            selected = self._select_independent(scored)

        matches = []
        for pattern in self.config.field_patterns:
            best = selected.get(pattern.name)
            if best is None:
                continue

            value = parse_value(best.candidate.value, pattern.field_type)
            matches.append(FieldMatch(
                name=pattern.name,
                value=value,
                confidence=best.confidence,
                raw_match=best.candidate.raw_match,
                position=best.candidate.position,
                field_type=pattern.field_type,
                unit=pattern.unit,
                validation=validate_field(
                    pattern, value, best.confidence, self.config.min_confidence_for_acceptance
                ),
                line=best.candidate.line,
            ))
            logger.debug(
                f"{pattern.name.value}={value} conf={best.confidence:.2f} "
                f"raw={best.raw_score:.3f} signals={best.signals}"
            )

        logger.debug(f"Extracted {len(matches)} fields from column at line {region.header_line}")
        return matches


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def extract_fields(
    region: ColumnRegion,
    config: Optional[LogParsingConfig] = None,
) -> List[FieldMatch]:
    """Extract fields from a column region with a one-off extractor."""
    return FieldExtractor(config).extract(region)
