# ============================================================================
# src/thermal_log_ocr/core/__init__.py
# ============================================================================
"""
Core components for the thermal log OCR engine.
"""

from .config import LogParsingConfig
from .confidence import ConfidenceCalculator, ScoringWeights
from .log_parser import HourlyLogParser, parse_hourly_log
