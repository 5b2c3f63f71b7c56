# ============================================================================
# src/thermal_log_ocr/core/context/hourly_reading.py
# ============================================================================
"""
Hourly reading representation
- All field matches read from one hour column
- Derived overall confidence and quality accessors
- Per-column data for multi-hour documents
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from ...utils.exceptions import InvalidReadingError
from ..confidence import calculate_confidence, get_confidence_level
from .enums import FieldId
from .field_match import FieldMatch, FieldValue
from .geometry import ColumnBounds, OcrToken, TextPosition


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HourlyReading:
    inspection_time: str
    field_matches: Tuple[FieldMatch, ...] = ()
    raw_ocr_text: str = ""
    reported_confidence: Optional[float] = None  # informational only
    parsed_at: datetime = field(default_factory=_utcnow, compare=False)

    def __post_init__(self):
        matches = tuple(self.field_matches)
        names = [m.name for m in matches]
        duplicates = sorted({n.value for n in names if names.count(n) > 1})
        if duplicates:
            raise InvalidReadingError(
                f"Reading for {self.inspection_time} has duplicate fields: {', '.join(duplicates)}"
            )
        object.__setattr__(self, "field_matches", matches)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def empty(
        cls,
        inspection_time: str,
        raw_ocr_text: str = "",
        parsed_at: Optional[datetime] = None,
    ) -> "HourlyReading":
        if parsed_at is None:
            return cls(inspection_time=inspection_time, raw_ocr_text=raw_ocr_text)
        return cls(inspection_time=inspection_time, raw_ocr_text=raw_ocr_text, parsed_at=parsed_at)

    @classmethod
    def from_field_matches(
        cls,
        inspection_time: str,
        matches: Iterable[FieldMatch],
        raw_ocr_text: str = "",
        parsed_at: Optional[datetime] = None,
    ) -> "HourlyReading":
        """
        Build a reading keeping the highest-confidence match per field.

        Args:
            inspection_time: Hour label of the column
            matches: Matches in any order, possibly several per field
            raw_ocr_text: Source OCR text
            parsed_at: Optional timestamp, defaults to now

        Returns:
            HourlyReading with at most one match per field
        """
        best: Dict[FieldId, FieldMatch] = {}
        for match in matches:
            current = best.get(match.name)
            if current is None or match.confidence > current.confidence:
                best[match.name] = match

        kwargs = {}
        if parsed_at is not None:
            kwargs["parsed_at"] = parsed_at
        return cls(
            inspection_time=inspection_time,
            field_matches=tuple(best.values()),
            raw_ocr_text=raw_ocr_text,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def overall_confidence(self) -> float:
        return calculate_confidence([m.confidence for m in self.field_matches])

    @property
    def confidence_level(self) -> str:
        return get_confidence_level(self.overall_confidence)

    @property
    def is_empty(self) -> bool:
        return not self.field_matches

    def get(self, field_id: Union[FieldId, str]) -> Optional[FieldMatch]:
        try:
            field_id = FieldId(field_id)
        except ValueError:
            return None
        for match in self.field_matches:
            if match.name == field_id:
                return match
        return None

    def value_of(self, field_id: Union[FieldId, str]) -> FieldValue:
        match = self.get(field_id)
        return match.value if match else None

    @property
    def values(self) -> Dict[str, FieldValue]:
        return {m.name.value: m.value for m in self.field_matches}

    @property
    def valid_field_count(self) -> int:
        return sum(1 for m in self.field_matches if m.is_valid)

    @property
    def high_confidence_field_count(self) -> int:
        return sum(1 for m in self.field_matches if m.is_high_confidence)

    @property
    def is_high_quality(self) -> bool:
        return self.overall_confidence >= 0.8 and len(self.field_matches) >= 6

    @property
    def is_acceptable(self) -> bool:
        return self.overall_confidence >= 0.6 and len(self.field_matches) >= 4

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inspection_time": self.inspection_time,
            "overall_confidence": self.overall_confidence,
            "confidence_level": self.confidence_level,
            "reported_confidence": self.reported_confidence,
            "parsed_at": self.parsed_at.isoformat(),
            "field_count": len(self.field_matches),
            "valid_field_count": self.valid_field_count,
            "fields": {m.name.value: m.to_dict() for m in self.field_matches},
        }


@dataclass(frozen=True)
class ColumnData:
    """Raw extraction for one located hour column."""
    hour_label: str
    position: TextPosition
    bounds: ColumnBounds
    field_matches: Tuple[FieldMatch, ...] = ()
    empty_cells: Tuple[OcrToken, ...] = ()  # cells marked blank in the text

    def __post_init__(self):
        object.__setattr__(self, "field_matches", tuple(self.field_matches))
        object.__setattr__(self, "empty_cells", tuple(self.empty_cells))

    @property
    def is_filled(self) -> bool:
        return bool(self.field_matches)

    def value_of(self, field_id: Union[FieldId, str]) -> FieldValue:
        for match in self.field_matches:
            if match.name == field_id:
                return match.value
        return None
