# ============================================================================
# src/thermal_log_ocr/core/context/__init__.py
# ============================================================================
"""
Value types shared by the locator, extractor, detector and validators.
"""

from .enums import FieldId, FieldType, HallucinationType, ParseState, Verdict
from .field_pattern import FieldPattern
from .geometry import (
    BBox,
    ColumnBounds,
    ColumnRegion,
    OcrToken,
    RegionLine,
    SourceGeometry,
    TextPosition,
)
from .validation import HallucinationFlag, ValidationCheck, ValidationResult
from .field_match import FieldCandidate, FieldMatch, ScoredCandidate
from .hourly_reading import ColumnData, HourlyReading
from .outcome import ParseOutcome
