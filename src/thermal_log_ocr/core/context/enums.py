# ============================================================================
# src/thermal_log_ocr/core/context/enums.py
# ============================================================================
"""
Parsing Enums
- Log fields and their value types
- Hallucination categories
- Parse states and verdicts
"""

from enum import Enum

class FieldId(str, Enum):
    VAPOR_INLET_FPM = "vaporInletFpm"
    DILUTION_AIR_FPM = "dilutionAirFpm"
    COMBUSTION_AIR_FPM = "combustionAirFpm"
    EXHAUST_TEMP_F = "exhaustTempF"
    SPHERE_PRESSURE_PSI = "spherePressurePsi"
    INLET_PPM = "inletPpm"
    OUTLET_PPM = "outletPpm"
    TOTALIZER_SCF = "totalizerScf"

class FieldType(str, Enum):
    NUMERIC = "numeric"
    FLOW_RATE = "flowRate"
    TEMPERATURE = "temperature"
    PRESSURE = "pressure"
    CONCENTRATION = "concentration"
    TOTALIZER = "totalizer"
    TIME = "time"
    TEXT = "text"

    @property
    def is_numeric(self) -> bool:
        return self not in (FieldType.TIME, FieldType.TEXT)

class HallucinationType(str, Enum):
    PERFECT_SEQUENCE = "perfectSequence"
    SPATIAL_MISALIGNMENT = "spatialMisalignment"
    CONFIDENCE_INCONSISTENCY = "confidenceInconsistency"
    EMPTY_CELL_WITH_CONTENT = "emptyCellWithContent"
    PATTERN_ANOMALY = "patternAnomaly"

class ParseState(str, Enum):
    NOT_ATTEMPTED = "notAttempted"
    TARGET_COLUMN_NOT_FOUND = "targetColumnNotFound"  # terminal
    PARSE_FAILED = "parseFailed"                      # terminal
    EXTRACTED = "extracted"
    VALIDATED = "validated"                           # terminal, carries a verdict

class Verdict(str, Enum):
    ACCEPTED = "accepted"
    MANUAL_REVIEW_REQUIRED = "manualReviewRequired"
    REJECTED = "rejected"
