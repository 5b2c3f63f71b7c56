# ============================================================================
# src/thermal_log_ocr/core/context/field_match.py
# ============================================================================
"""
Extracted field representation
- Raw candidates found by a field pattern
- Scored candidates with their signal breakdown
- Accepted field match with per-field validation
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .enums import FieldId, FieldType
from .validation import ValidationResult

FieldValue = Union[int, float, str, None]

@dataclass(frozen=True)
class FieldCandidate:
    value: str       # captured value text
    line: int        # line number in the normalized text
    position: int    # absolute offset of the value in the normalized text
    raw_match: str   # full matched text
    column: int = 0  # column of the value within its line

    @property
    def span(self):
        return (self.line, self.column, self.column + len(self.value))

@dataclass(frozen=True)
class ScoredCandidate:
    field_name: FieldId
    candidate: FieldCandidate
    confidence: float   # clamped to [0, 1]
    raw_score: float    # unclamped, used for ranking
    signals: Dict[str, float] = field(default_factory=dict)
    alias_distance: Optional[int] = None  # lines between the value and the nearest field alias

    @property
    def alias_rank(self) -> int:
        return 0 if self.alias_distance == 0 else 1

@dataclass(frozen=True)
class FieldMatch:
    name: FieldId
    value: FieldValue
    confidence: float
    raw_match: str
    position: int
    field_type: FieldType
    unit: str
    validation: ValidationResult
    line: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.validation.is_valid and self.confidence >= 0.5

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence >= 0.8

    @property
    def is_numeric(self) -> bool:
        return isinstance(self.value, (int, float)) and not isinstance(self.value, bool)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "value": self.value,
            "confidence": self.confidence,
            "raw_match": self.raw_match,
            "position": self.position,
            "line": self.line,
            "type": self.field_type.value,
            "unit": self.unit,
            "is_valid": self.is_valid,
            "errors": list(self.validation.errors),
            "warnings": list(self.validation.warnings),
        }
