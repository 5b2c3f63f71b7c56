# ============================================================================
# src/thermal_log_ocr/core/context/validation.py
# ============================================================================
"""
Validation results
- Single named check
- Combined result with verdict
- Hallucination flags raised by the detector
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from ..confidence import calculate_confidence
from .enums import HallucinationType, Verdict

@dataclass(frozen=True)
class ValidationCheck:
    name: str
    is_valid: bool
    confidence: float
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "errors", tuple(self.errors))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "is_valid": self.is_valid,
            "confidence": self.confidence,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }

@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    checks: Tuple[ValidationCheck, ...] = ()
    overall_confidence: float = 0.0
    requires_manual_review: bool = False

    def __post_init__(self):
        object.__setattr__(self, "errors", tuple(self.errors))
        object.__setattr__(self, "warnings", tuple(self.warnings))
        object.__setattr__(self, "checks", tuple(self.checks))

    @property
    def verdict(self) -> Verdict:
        if not self.is_valid:
            return Verdict.REJECTED
        if self.requires_manual_review:
            return Verdict.MANUAL_REVIEW_REQUIRED
        return Verdict.ACCEPTED

    def check(self, name: str) -> Optional[ValidationCheck]:
        for check in self.checks:
            if check.name == name:
                return check
        return None

    @classmethod
    def combine(
        cls,
        checks: Iterable[ValidationCheck],
        strict_mode: bool = True,
        min_confidence: float = 0.8,
    ) -> "ValidationResult":
        """
        Combine individual checks into one result.

        Args:
            checks: Executed checks, in order
            strict_mode: Every check must pass for the result to be valid
            min_confidence: Overall confidence below this requires review

        Returns:
            Combined ValidationResult
        """
        checks = tuple(checks)
        errors = tuple(e for c in checks for e in c.errors)
        warnings = tuple(w for c in checks for w in c.warnings)
        overall = calculate_confidence([c.confidence for c in checks])

        is_valid = not errors
        if strict_mode:
            is_valid = is_valid and all(c.is_valid for c in checks)

        return cls(
            is_valid=is_valid,
            errors=errors,
            warnings=warnings,
            checks=checks,
            overall_confidence=overall,
            requires_manual_review=bool(warnings) or overall < min_confidence,
        )

    @classmethod
    def for_field(cls, errors, warnings, confidence: float, min_confidence: float = 0.8) -> "ValidationResult":
        """Validation attached to a single field match."""
        return cls(
            is_valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            overall_confidence=confidence,
            requires_manual_review=bool(warnings) or confidence < min_confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "verdict": self.verdict.value,
            "overall_confidence": self.overall_confidence,
            "requires_manual_review": self.requires_manual_review,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "checks": [c.to_dict() for c in self.checks],
        }

@dataclass(frozen=True)
class HallucinationFlag:
    type: HallucinationType
    description: str
    affected_field: Optional[str] = None
    hour_label: Optional[str] = None
    values: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))

    @property
    def is_blocking(self) -> bool:
        return self.type == HallucinationType.EMPTY_CELL_WITH_CONTENT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "affected_field": self.affected_field,
            "hour_label": self.hour_label,
            "values": list(self.values),
        }
