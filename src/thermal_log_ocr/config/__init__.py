# ============================================================================
# src/thermal_log_ocr/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .parsing_config import ParsingSettings, parsing_settings
from .logging_config import LoggingSettings, logging_settings
