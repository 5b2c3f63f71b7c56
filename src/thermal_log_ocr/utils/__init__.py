# ============================================================================
# src/thermal_log_ocr/utils/__init__.py
# ============================================================================
"""
Utility modules for the thermal log OCR engine.
"""

from .exceptions import (
    ThermalLogError,
    ConfigurationError,
    InvalidTargetHourError,
    ParsingError,
    ColumnNotFoundError,
    ValidationError,
    InvalidReadingError,
    InvalidStateTransitionError,
)
from .logging import setup_logging, setup_logging_from_settings, get_logger, log_performance
