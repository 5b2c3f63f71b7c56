# ============================================================================
# src/thermal_log_ocr/config/parsing_config.py
# ============================================================================
"""
Parsing Thresholds & Scoring Weights
- Column location
- Candidate scoring weights
- Field acceptance
- Hallucination detection
- Validation pipeline acceptance
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class ParsingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="THERMAL_LOG_")

    # Column location
    FUZZY_MATCH_THRESHOLD: float = Field(
        default=0.8,
        ge=0.0, le=1.0,
        description="A fuzzy hour match must score strictly above this to be used as the target column"
    )
    DEFAULT_COLUMN_HALF_WIDTH: int = Field(
        default=30,
        ge=1,
        description="Characters either side of an hour label when it has no neighbour on that side"
    )
    MAX_ROWS_BELOW_HEADER: int = Field(
        default=15,
        ge=1,
        description="Maximum number of lines below an hour header that belong to its column"
    )
    PRESERVE_LAYOUT: bool = Field(
        default=True,
        description="Keep runs of spaces during normalization so data rows stay aligned with header offsets"
    )

    # Field extraction
    MIN_FIELD_CONFIDENCE: float = Field(
        default=0.5,
        ge=0.0, le=1.0,
        description="Minimum candidate confidence for a field to be extracted"
    )
    EXCLUSIVE_TOKENS: bool = Field(
        default=True,
        description="A single OCR token may fill at most one field"
    )
    CONTEXT_LINES_BEFORE: int = Field(
        default=2,
        ge=0,
        description="Lines above a candidate searched for field aliases"
    )
    CONTEXT_LINES_AFTER: int = Field(
        default=1,
        ge=0,
        description="Lines below a candidate searched for field aliases"
    )

    # Scoring weights
    BASE_CONFIDENCE: float = Field(default=0.5, ge=0.0, le=1.0, description="Starting score of every candidate")
    WEIGHT_PATTERN_QUALITY: float = Field(default=0.20, ge=0.0, le=1.0, description="Weight of the pattern quality signal")
    WEIGHT_RANGE_IN: float = Field(default=0.25, ge=0.0, le=1.0, description="Bonus for a value inside the expected range")
    WEIGHT_RANGE_OUT_PENALTY: float = Field(default=0.30, ge=0.0, le=1.0, description="Penalty for a value outside the expected range")
    WEIGHT_SPATIAL: float = Field(default=0.20, ge=0.0, le=1.0, description="Weight of the spatial signal")
    WEIGHT_CONTEXT: float = Field(default=0.15, ge=0.0, le=1.0, description="Weight of the surrounding context signal")
    WEIGHT_DISTINCTIVENESS: float = Field(default=0.10, ge=0.0, le=1.0, description="Weight of the value distinctiveness signal")
    WEIGHT_OCR_QUALITY: float = Field(default=0.10, ge=0.0, le=1.0, description="Weight of the OCR cleanliness signal")

    # Hallucination detection
    HIGH_CONFIDENCE_THRESHOLD: float = Field(
        default=0.8,
        ge=0.0, le=1.0,
        description="Confidence at or above which suspicious content is flagged as inconsistent"
    )
    SEQUENCE_VARIANCE_THRESHOLD: float = Field(
        default=1.0,
        ge=0.0,
        description="Variance of successive differences below which a sequence is suspiciously perfect"
    )
    MIN_SEQUENCE_LENGTH: int = Field(
        default=3,
        ge=3,
        description="Minimum number of values before a progression is considered"
    )
    SPATIAL_TOLERANCE: float = Field(
        default=0.25,
        ge=0.0,
        description="Fraction of the column band width a value may drift outside its band"
    )
    FILTER_MIN_CONFIDENCE: float = Field(
        default=0.7,
        ge=0.0, le=1.0,
        description="Strict filtering drops unflagged fields below this confidence"
    )

    # Validation pipeline
    MIN_CONFIDENCE_FOR_ACCEPTANCE: float = Field(
        default=0.8,
        ge=0.0, le=1.0,
        description="Overall and per-field confidence required to accept a reading without review"
    )
    MIN_BOUNDING_BOX_OVERLAP: float = Field(
        default=0.7,
        ge=0.0, le=1.0,
        description="Minimum overlap between observed and expected value boxes"
    )
    MAX_FILLED_HOURS: int = Field(
        default=8,
        ge=1,
        description="More filled hour columns than this on one sheet is unusual"
    )

parsing_settings = ParsingSettings()
