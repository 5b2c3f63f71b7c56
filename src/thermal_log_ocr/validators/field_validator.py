# ============================================================================
# FILE: src/thermal_log_ocr/validators/field_validator.py
# ============================================================================
"""
Single-field validation.

Checks one extracted value against its field pattern:
1. Value could be parsed
2. Expected physical range
3. Type-specific plausibility (low exhaust temperature, extreme PPM,
   non-positive pressure)

Errors make the field invalid; warnings only ask for review.
"""

import logging
from typing import List, Tuple

from ..constants import FIELD_VALIDATION_LIMITS
from ..core.context.enums import FieldType
from ..core.context.field_match import FieldValue
from ..core.context.field_pattern import FieldPattern
from ..core.context.validation import ValidationResult

logger = logging.getLogger(__name__)


def check_field_value(pattern: FieldPattern, value: FieldValue) -> Tuple[List[str], List[str]]:
    """
    Validate a parsed value.

    Args:
        pattern: Field pattern the value was extracted with
        value: Parsed value (None when parsing failed)

    Returns:
        (errors, warnings)
    """
    errors: List[str] = []
    warnings: List[str] = []

    # Check 1: Parsed at all
    if value is None:
        errors.append("Failed to parse value")
        return errors, warnings

    numeric = isinstance(value, (int, float)) and not isinstance(value, bool)

    # Check 2: Expected range
    if numeric and pattern.has_range and not pattern.is_in_expected_range(value):
        warnings.append(f"Value {value} outside expected range {pattern.format_range()}")

    # Check 3: Type-specific plausibility
    if numeric:
        if pattern.field_type == FieldType.TEMPERATURE:
            if value < FIELD_VALIDATION_LIMITS["temperature_low_warning"]:
                warnings.append("Temperature seems low for exhaust system")

        elif pattern.field_type == FieldType.CONCENTRATION:
            if value > FIELD_VALIDATION_LIMITS["concentration_high_warning"]:
                warnings.append("PPM value seems extremely high")

        elif pattern.field_type == FieldType.PRESSURE:
            if value <= 0:
                errors.append("Pressure must be positive")

    if errors or warnings:
        logger.debug(f"{pattern.name.value}={value}: errors={errors} warnings={warnings}")

    return errors, warnings


def validate_field(
    pattern: FieldPattern,
    value: FieldValue,
    confidence: float,
    min_confidence: float = 0.8,
) -> ValidationResult:
    """Validation result attached to a FieldMatch; review is asked below min_confidence."""
    errors, warnings = check_field_value(pattern, value)
    return ValidationResult.for_field(errors, warnings, confidence, min_confidence)
