# ============================================================================
# FILE: src/thermal_log_ocr/validators/__init__.py
# ============================================================================
"""
Validators Package

Provides validation for extracted hourly readings:
- Field validation (parse, range, type plausibility)
- Hallucination detection (fabricated values)
- Business rules (operating envelope)
- Validation pipeline (combined verdict and report)
"""

from .field_validator import check_field_value, validate_field
from .hallucination_detector import (
    AntiHallucinationDetector,
    detect_hallucinations,
    is_perfect_sequence,
    is_round_number,
)
from .rule_validator import RuleValidator, validate_business_rules
from .validation_pipeline import (
    ValidationPipeline,
    generate_validation_report,
    validate_reading,
)

__all__ = [
    # Field validation
    'check_field_value',
    'validate_field',

    # Hallucination detection
    'AntiHallucinationDetector',
    'detect_hallucinations',
    'is_perfect_sequence',
    'is_round_number',

    # Business rules
    'RuleValidator',
    'validate_business_rules',

    # Pipeline
    'ValidationPipeline',
    'generate_validation_report',
    'validate_reading',
]
