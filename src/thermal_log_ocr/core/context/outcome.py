# ============================================================================
# src/thermal_log_ocr/core/context/outcome.py
# ============================================================================
"""
Parse outcome
- Lifecycle state of one hour's parse
- Separates expected absence (column not found) from faults
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from ...utils.exceptions import ColumnNotFoundError, InvalidStateTransitionError, ParsingError
from .enums import ParseState, Verdict
from .hourly_reading import ColumnData, HourlyReading
from .validation import HallucinationFlag, ValidationResult

ALLOWED_TRANSITIONS = {
    ParseState.NOT_ATTEMPTED: {
        ParseState.TARGET_COLUMN_NOT_FOUND,
        ParseState.PARSE_FAILED,
        ParseState.EXTRACTED,
    },
    ParseState.EXTRACTED: {ParseState.VALIDATED, ParseState.PARSE_FAILED},
    ParseState.TARGET_COLUMN_NOT_FOUND: set(),
    ParseState.PARSE_FAILED: set(),
    ParseState.VALIDATED: set(),
}

@dataclass(frozen=True)
class ParseOutcome:
    target_hour: str
    state: ParseState = ParseState.NOT_ATTEMPTED
    reading: Optional[HourlyReading] = None
    reason: Optional[str] = None
    column_label: Optional[str] = None  # label of the column actually read
    hallucination_flags: Tuple[HallucinationFlag, ...] = ()
    validation: Optional[ValidationResult] = None
    columns: Tuple[ColumnData, ...] = ()
    filtered_reading: Optional[HourlyReading] = None  # reading without flagged fields

    def advance(self, state: ParseState, **changes) -> "ParseOutcome":
        """
        Move to the next lifecycle state.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed
        """
        if state not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidStateTransitionError(
                f"Cannot move parse of {self.target_hour} from {self.state.value} to {state.value}",
                from_state=self.state.value,
                to_state=state.value,
            )
        if state == ParseState.VALIDATED and changes.get("validation", self.validation) is None:
            raise InvalidStateTransitionError(
                "A validated outcome needs a validation result",
                from_state=self.state.value,
                to_state=state.value,
            )
        for key in ("hallucination_flags", "columns"):
            if key in changes:
                changes[key] = tuple(changes[key])
        return replace(self, state=state, **changes)

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.state]

    @property
    def found(self) -> bool:
        return self.state in (ParseState.EXTRACTED, ParseState.VALIDATED)

    def raise_for_state(self) -> "ParseOutcome":
        """
        Turn a structural failure into an exception for callers that want one.

        Raises:
            ColumnNotFoundError: If the target hour column was not found
            ParsingError: If parsing failed unexpectedly
        """
        if self.state == ParseState.TARGET_COLUMN_NOT_FOUND:
            raise ColumnNotFoundError(self.reason, target_hour=self.target_hour)
        if self.state == ParseState.PARSE_FAILED:
            raise ParsingError(self.reason)
        return self

    @property
    def verdict(self) -> Optional[Verdict]:
        if self.state != ParseState.VALIDATED:
            return None
        return self.validation.verdict

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_hour": self.target_hour,
            "state": self.state.value,
            "reason": self.reason,
            "column_label": self.column_label,
            "verdict": self.verdict.value if self.verdict else None,
            "reading": self.reading.to_dict() if self.reading else None,
            "filtered_reading": self.filtered_reading.to_dict() if self.filtered_reading else None,
            "hallucination_flags": [f.to_dict() for f in self.hallucination_flags],
            "validation": self.validation.to_dict() if self.validation else None,
        }
