# ============================================================================
# src/thermal_log_ocr/core/context/field_pattern.py
# ============================================================================
"""
Field pattern definition
- How one log field is recognized in OCR text
- Expected physical range and unit
- Aliases used as context when scoring candidates
"""

from dataclasses import dataclass
from typing import Optional, Pattern, Tuple, Union

from .enums import FieldId, FieldType

Number = Union[int, float]

@dataclass(frozen=True)
class FieldPattern:
    name: FieldId
    matcher: Pattern        # group 1 (or the whole match) is the value
    field_type: FieldType
    unit: str = ""
    expected_range: Optional[Tuple[Number, Number]] = None  # inclusive
    aliases: Tuple[str, ...] = ()
    label: str = ""
    expects_variation: bool = True  # False for cumulative counters

    def __post_init__(self):
        object.__setattr__(self, "aliases", tuple(self.aliases))
        if self.expected_range is not None:
            object.__setattr__(self, "expected_range", tuple(self.expected_range))

    @property
    def display_name(self) -> str:
        return self.label or self.name.value

    @property
    def has_range(self) -> bool:
        return self.expected_range is not None

    def is_in_expected_range(self, value) -> bool:
        """True when the value lies inside the inclusive range, or no range is defined."""
        if self.expected_range is None:
            return True
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            return False
        low, high = self.expected_range
        return low <= value <= high

    def format_range(self) -> str:
        if self.expected_range is None:
            return ""
        low, high = self.expected_range
        return f"{low}-{high} {self.unit}".strip()
