# ============================================================================
# src/thermal_log_ocr/extractors/__init__.py
# ============================================================================
"""
Extractors Package

Turns normalized OCR text into field matches:
- Column location (hour labels, bounds, column region)
- Field extraction (candidate scoring and selection)
"""

from .column_locator import ColumnLocator, hour_similarity, locate_hour_columns
from .field_extractor import FieldExtractor, extract_fields, parse_value

__all__ = [
    # Column location
    'ColumnLocator',
    'hour_similarity',
    'locate_hour_columns',

    # Field extraction
    'FieldExtractor',
    'extract_fields',
    'parse_value',
]
