# ============================================================================
# src/thermal_log_ocr/constants/__init__.py
# ============================================================================
"""
Convenient imports for all constants
"""

from .field_patterns import STANDARD_FIELD_DEFINITIONS, STANDARD_HOUR_LABELS
from .validation_rules import (
    STRICT_VALUE_PATTERNS,
    ROUND_NUMBER_PATTERNS,
    BUSINESS_LIMITS,
    FIELD_VALIDATION_LIMITS,
    CHECK_CONFIDENCES,
    EMPTY_CELL_MARKER_PATTERN,
    EMPTY_CELL_DASH_PATTERN,
)
