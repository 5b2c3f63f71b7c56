# ============================================================================
# FILE: src/thermal_log_ocr/validators/validation_pipeline.py
# ============================================================================
"""
Validation Pipeline

Runs the named checks over a reading and combines them into one result:
1. hallucination_detection - detector flags and round numbers
2. regex_patterns          - strict value format per field
3. bounding_boxes          - value boxes inside their expected regions
                             (only with OCR geometry)
4. confidence_thresholds   - overall and per-field confidence
5. business_logic          - operating-envelope rules
6. pattern_consistency     - filled hours and regular progressions

Errors reject the reading; warnings send it to manual review.
"""

import re
import logging
from typing import Iterable, List, Mapping, Optional, Union

from ..constants import CHECK_CONFIDENCES, STRICT_VALUE_PATTERNS
from ..core.bbox_utils import (
    bbox_coverage,
    column_band,
    find_value_token,
    header_boxes,
    is_reasonable_bbox,
    validate_bbox,
)
from ..core.config import LogParsingConfig
from ..core.context.geometry import SourceGeometry
from ..core.context.hourly_reading import ColumnData, HourlyReading
from ..core.context.validation import HallucinationFlag, ValidationCheck, ValidationResult
from .hallucination_detector import AntiHallucinationDetector, is_perfect_sequence
from .rule_validator import RuleValidator

logger = logging.getLogger(__name__)

STRICT_VALUE_REGEXES = {name: re.compile(p) for name, p in STRICT_VALUE_PATTERNS.items()}

Columns = Union[Mapping[str, ColumnData], Iterable[ColumnData]]


def _make_check(name: str, errors: List[str], warnings: List[str]) -> ValidationCheck:
    valid_confidence, invalid_confidence = CHECK_CONFIDENCES[name]
    is_valid = not errors
    return ValidationCheck(
        name=name,
        is_valid=is_valid,
        confidence=valid_confidence if is_valid else invalid_confidence,
        errors=errors,
        warnings=warnings,
    )


class ValidationPipeline:
    """
    Multi-check validation of an hourly reading.

    Stateless apart from its configuration; safe to share between threads.
    """

    def __init__(
        self,
        config: Optional[LogParsingConfig] = None,
        rule_validator: Optional[RuleValidator] = None,
    ):
        self.config = config or LogParsingConfig.standard()
        self.rule_validator = rule_validator or RuleValidator()
        self.detector = AntiHallucinationDetector(self.config)

    def validate(
        self,
        reading: HourlyReading,
        hallucination_flags: Iterable[HallucinationFlag] = (),
        geometry: Optional[SourceGeometry] = None,
        strict_mode: bool = True,
        columns: Optional[Columns] = None,
    ) -> ValidationResult:
        """
        Validate a reading.

        Args:
            reading: Reading to validate
            hallucination_flags: Flags raised by the detector
            geometry: Optional OCR token geometry
            strict_mode: Every check must pass for the reading to be valid
            columns: Optional data of all hour columns on the sheet

        Returns:
            Combined ValidationResult
        """
        flags = list(hallucination_flags)

        checks = [
            self.check_hallucinations(reading, flags),
            self.check_regex_patterns(reading),
        ]
        if geometry is not None and geometry.has_boxes:
            checks.append(self.check_bounding_boxes(reading, geometry))
        checks.extend([
            self.check_confidence_thresholds(reading),
            self.check_business_logic(reading),
            self.check_pattern_consistency(reading, columns),
        ])

        result = ValidationResult.combine(
            checks,
            strict_mode=strict_mode,
            min_confidence=self.config.min_confidence_for_acceptance,
        )

        logger.info(
            f"Validated {reading.inspection_time}: {result.verdict.value} "
            f"(confidence {result.overall_confidence:.2f}, "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings)"
        )
        return result

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def check_hallucinations(
        self,
        reading: HourlyReading,
        flags: List[HallucinationFlag],
    ) -> ValidationCheck:
        errors = []
        warnings = []

        if flags:
            errors.append(f"{len(flags)} potential hallucination(s) detected")
            for flag in flags:
                warnings.append(f"{flag.type.value}: {flag.description}")

        for field_id, value in self.detector.find_round_numbers(reading):
            warnings.append(f"Round number detected for {field_id.value}: {value}")

        return _make_check("hallucination_detection", errors, warnings)

    def check_regex_patterns(self, reading: HourlyReading) -> ValidationCheck:
        errors = []
        for match in reading.field_matches:
            regex = STRICT_VALUE_REGEXES.get(match.name.value)
            if regex is None:
                continue
            if not regex.match(str(match.value)):
                errors.append(
                    f"{match.name.value} value '{match.value}' does not match expected format"
                )
        return _make_check("regex_patterns", errors, [])

    def check_bounding_boxes(
        self,
        reading: HourlyReading,
        geometry: SourceGeometry,
    ) -> ValidationCheck:
        errors = []
        warnings = []
        label = reading.inspection_time
        band = column_band(header_boxes(geometry.tokens), label)
        min_overlap = self.config.min_bounding_box_overlap

        for match in reading.field_matches:
            token = find_value_token(
                geometry.tokens,
                match.raw_match,
                hour_label=label,
                field_name=match.name.value,
                line=match.line,
                band=band,
            )
            if token is None:
                continue

            if not is_reasonable_bbox(token.bbox, geometry.image_width, geometry.image_height):
                errors.append(f"Unreasonable bounding box for {match.name.value}: {token.bbox}")
                continue

            expected = geometry.expected_bounds.get(match.name.value)
            if expected is None and band is not None:
                expected = (band[0], token.bbox[1], band[1], token.bbox[3])
            if expected is None:
                continue
            if not validate_bbox(expected):
                errors.append(f"Unreasonable expected region for {match.name.value}: {expected}")
                continue

            overlap = bbox_coverage(token.bbox, expected)
            if overlap < min_overlap:
                warnings.append(
                    f"{match.name.value} box overlaps its expected region by {overlap:.0%} "
                    f"(minimum {min_overlap:.0%})"
                )

        return _make_check("bounding_boxes", errors, warnings)

    def check_confidence_thresholds(self, reading: HourlyReading) -> ValidationCheck:
        errors = []
        warnings = []
        threshold = self.config.min_confidence_for_acceptance

        overall = reading.overall_confidence
        if overall < threshold:
            errors.append(f"Overall confidence {overall:.2f} below required {threshold:.2f}")

        for match in reading.field_matches:
            if match.confidence < threshold:
                warnings.append(
                    f"{match.name.value} confidence {match.confidence:.2f} below {threshold:.2f}"
                )

        return _make_check("confidence_thresholds", errors, warnings)

    def check_business_logic(self, reading: HourlyReading) -> ValidationCheck:
        errors, warnings = self.rule_validator.validate(reading)
        return _make_check("business_logic", errors, warnings)

    def check_pattern_consistency(
        self,
        reading: HourlyReading,
        columns: Optional[Columns] = None,
    ) -> ValidationCheck:
        warnings = []

        if columns:
            values = columns.values() if isinstance(columns, Mapping) else columns
            filled = sum(1 for column in values if column.is_filled)
            if filled > self.config.max_filled_hours:
                warnings.append(
                    f"{filled} hour columns filled, more than the expected {self.config.max_filled_hours}"
                )

        matches = sorted(reading.field_matches, key=lambda m: self.config.field_order(m.name))
        sequence = [m.value for m in matches if m.is_numeric]
        if is_perfect_sequence(
            sequence,
            min_length=self.config.min_sequence_length,
            variance_threshold=self.config.sequence_variance_threshold,
        ):
            warnings.append("Field values show an unnaturally regular progression")

        return _make_check("pattern_consistency", [], warnings)


# ============================================================================
# REPORTING
# ============================================================================

def generate_validation_report(
    result: ValidationResult,
    reading: Optional[HourlyReading] = None,
) -> str:
    """
    Render a plain-text validation report.

    Args:
        result: Combined validation result
        reading: Optional reading the result belongs to

    Returns:
        Multi-line report
    """
    lines = ["OCR VALIDATION REPORT", "=" * 21]

    if reading is not None:
        lines.append(f"Hour: {reading.inspection_time}")
        lines.append(f"Fields extracted: {len(reading.field_matches)}")

    lines.append(f"Status: {'VALID' if result.is_valid else 'INVALID'}")
    lines.append(f"Verdict: {result.verdict.value}")
    lines.append(f"Overall confidence: {result.overall_confidence:.1%}")
    lines.append(f"Manual review required: {'yes' if result.requires_manual_review else 'no'}")

    lines.append("")
    lines.append("CHECKS:")
    for check in result.checks:
        status = "PASS" if check.is_valid else "FAIL"
        lines.append(f"  [{status}] {check.name} ({check.confidence:.0%})")

    if result.errors:
        lines.append("")
        lines.append("ERRORS:")
        lines.extend(f"  - {error}" for error in result.errors)

    if result.warnings:
        lines.append("")
        lines.append("WARNINGS:")
        lines.extend(f"  - {warning}" for warning in result.warnings)

    if reading is not None and reading.field_matches:
        lines.append("")
        lines.append("FIELDS:")
        for match in reading.field_matches:
            lines.append(
                f"  {match.name.value}: {match.value} {match.unit} ({match.confidence:.0%})"
            )

    return "\n".join(lines)


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def validate_reading(
    reading: HourlyReading,
    hallucination_flags: Iterable[HallucinationFlag] = (),
    strict_mode: bool = True,
    config: Optional[LogParsingConfig] = None,
) -> ValidationResult:
    """
    Quick validation of a reading.

    Args:
        reading: Reading to validate
        hallucination_flags: Flags raised by the detector
        strict_mode: Every check must pass
        config: Optional parsing configuration

    Returns:
        ValidationResult
    """
    pipeline = ValidationPipeline(config)
    return pipeline.validate(reading, hallucination_flags, strict_mode=strict_mode)
