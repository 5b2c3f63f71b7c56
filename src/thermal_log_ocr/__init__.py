# ============================================================================
# src/thermal_log_ocr/__init__.py
# ============================================================================
"""
Thermal Log OCR

Parses OCR text of photographed hourly thermal oxidizer logs:
- Locates the column of a requested hour
- Extracts field values with multi-signal confidence
- Flags values OCR post-processing likely fabricated
- Returns a validated reading with an accept / review / reject verdict
"""

from .core.config import LogParsingConfig
from .core.context import (
    ColumnData,
    FieldId,
    FieldMatch,
    FieldPattern,
    FieldType,
    HallucinationFlag,
    HallucinationType,
    HourlyReading,
    OcrToken,
    ParseOutcome,
    ParseState,
    SourceGeometry,
    ValidationResult,
    Verdict,
)
from .core.log_parser import HourlyLogParser, parse_hourly_log
from .extractors import ColumnLocator, FieldExtractor
from .validators import AntiHallucinationDetector, ValidationPipeline, generate_validation_report
from .utils.exceptions import ConfigurationError, InvalidTargetHourError, ThermalLogError

__version__ = "0.1.0"
