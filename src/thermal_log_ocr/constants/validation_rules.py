# ============================================================================
# src/thermal_log_ocr/constants/validation_rules.py
# ============================================================================
"""
Validation Rules
- Strict value formats per field
- Round-number patterns that hint at fabricated values
- Business limits for an operating thermal oxidizer
- Check confidences used by the validation pipeline
"""

# Matched against str(value) of an extracted field
STRICT_VALUE_PATTERNS = {
    "vaporInletFpm": r"^\d{1,5}$",
    "dilutionAirFpm": r"^\d{1,5}$",
    "combustionAirFpm": r"^\d{1,5}$",
    "exhaustTempF": r"^\d{3,4}$",
    "spherePressurePsi": r"^\d{1,3}(\.\d{1,2})?$",
    "inletPpm": r"^\d{1,6}(\.\d{1,2})?$",
    "outletPpm": r"^\d{1,6}(\.\d{1,2})?$",
    "totalizerScf": r"^\d{4,10}$",
}

ROUND_NUMBER_PATTERNS = [
    r"^\d{1,3}00$",
    r"^\d{1,2}50$",
    r"^\d{1,2}0$",
]

BUSINESS_LIMITS = {
    "exhaust_temp_min": 500,
    "exhaust_temp_max": 2000,
    "sphere_pressure_max": 50,
    "outlet_to_inlet_max_ratio": 0.1,
}

# Marks written into a cell left blank on the sheet. "N/A" may stand
# beside other text; a dash only counts as the whole cell. Normalization
# blanks "/", so "N A" is accepted too.
EMPTY_CELL_MARKER_PATTERN = r"(?<!\S)N[/ ]?A(?!\S)"
EMPTY_CELL_DASH_PATTERN = r"^\s*-{1,3}\s*$"

# Per-field plausibility used when validating a single match
FIELD_VALIDATION_LIMITS = {
    "temperature_low_warning": 100,
    "concentration_high_warning": 50000,
}

# (confidence when valid, confidence when invalid)
CHECK_CONFIDENCES = {
    "hallucination_detection": (0.9, 0.3),
    "regex_patterns": (0.9, 0.4),
    "bounding_boxes": (0.8, 0.3),
    "confidence_thresholds": (0.9, 0.4),
    "business_logic": (0.9, 0.5),
    "pattern_consistency": (0.8, 0.6),
}
