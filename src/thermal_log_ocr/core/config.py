# ============================================================================
# src/thermal_log_ocr/core/config.py
# ============================================================================
"""
Parsing Configuration

Immutable configuration handed to every parsing component. Tunable
numbers default to the global parsing settings (environment driven); the
field registry is data driven and built from plain mappings.

Usage:
    from thermal_log_ocr.core.config import LogParsingConfig

    # Standard eight-field thermal log
    config = LogParsingConfig.standard()

    # Custom registry
    config = LogParsingConfig.from_mapping({
        "exhaustTempF": {"pattern": r"(\\d{3,4})", "type": "temperature", "unit": "°F"},
    })
"""

import re
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from ..config import parsing_settings
from ..constants import STANDARD_FIELD_DEFINITIONS
from ..utils.exceptions import ConfigurationError
from .confidence import ScoringWeights
from .context.enums import FieldId, FieldType
from .context.field_pattern import FieldPattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogParsingConfig:
    field_patterns: Tuple[FieldPattern, ...]

    # Column location
    fuzzy_match_threshold: float = 0.8
    default_column_half_width: int = 30
    max_rows_below_header: int = 15
    preserve_layout: bool = True

    # Field extraction
    min_confidence_threshold: float = 0.5
    exclusive_tokens: bool = True
    context_lines_before: int = 2
    context_lines_after: int = 1
    weights: ScoringWeights = field(default_factory=ScoringWeights)

    # Hallucination detection
    high_confidence_threshold: float = 0.8
    sequence_variance_threshold: float = 1.0
    min_sequence_length: int = 3
    spatial_tolerance: float = 0.25
    filter_min_confidence: float = 0.7

    # Validation pipeline
    min_confidence_for_acceptance: float = 0.8
    min_bounding_box_overlap: float = 0.7
    max_filled_hours: int = 8

    def __post_init__(self):
        patterns = tuple(self.field_patterns)
        if not patterns:
            raise ConfigurationError("At least one field pattern is required")

        names = [p.name for p in patterns]
        if len(set(names)) != len(names):
            raise ConfigurationError("Field patterns must have unique names")

        for name in (
            "fuzzy_match_threshold",
            "min_confidence_threshold",
            "high_confidence_threshold",
            "filter_min_confidence",
            "min_confidence_for_acceptance",
            "min_bounding_box_overlap",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be between 0 and 1, got {value}")

        if self.min_sequence_length < 3:
            raise ConfigurationError("min_sequence_length must be at least 3")

        object.__setattr__(self, "field_patterns", patterns)

    @property
    def field_names(self) -> Tuple[FieldId, ...]:
        return tuple(p.name for p in self.field_patterns)

    def pattern_for(self, name) -> Optional[FieldPattern]:
        for pattern in self.field_patterns:
            if pattern.name == name:
                return pattern
        return None

    def field_order(self, name) -> int:
        """Registry position of a field; unknown fields sort last."""
        for index, pattern in enumerate(self.field_patterns):
            if pattern.name == name:
                return index
        return len(self.field_patterns)

    def with_overrides(self, **changes) -> "LogParsingConfig":
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def standard(cls, settings=None, **overrides) -> "LogParsingConfig":
        """Standard thermal log registry with thresholds from settings."""
        return cls.from_mapping(STANDARD_FIELD_DEFINITIONS, settings=settings, **overrides)

    @classmethod
    def from_mapping(
        cls,
        definitions: Mapping[str, Mapping[str, Any]],
        settings=None,
        **overrides,
    ) -> "LogParsingConfig":
        """
        Build a configuration from plain field definitions.

        Args:
            definitions: Field name -> {"pattern", "type", "unit", "range",
                "aliases", "label", "expects_variation"}
            settings: ParsingSettings instance (defaults to the global one)
            **overrides: Explicit values for any config attribute

        Returns:
            LogParsingConfig

        Raises:
            ConfigurationError: If any definition is malformed
        """
        if not isinstance(definitions, Mapping) or not definitions:
            raise ConfigurationError("Field definitions must be a non-empty mapping")

        patterns = tuple(
            build_field_pattern(name, definition)
            for name, definition in definitions.items()
        )

        kwargs = _settings_kwargs(settings or parsing_settings)
        kwargs.update(overrides)

        logger.debug(f"Built parsing config with {len(patterns)} field patterns")
        return cls(field_patterns=patterns, **kwargs)


def build_field_pattern(name: str, definition: Mapping[str, Any]) -> FieldPattern:
    """
    Build one FieldPattern from a plain definition.

    Raises:
        ConfigurationError: On unknown names/types, bad regexes, ranges or aliases
    """
    try:
        field_id = FieldId(name)
    except ValueError:
        raise ConfigurationError(f"Unknown field name: {name}", field_name=name)

    if not isinstance(definition, Mapping):
        raise ConfigurationError(f"Definition for {name} must be a mapping", field_name=name)

    pattern_text = definition.get("pattern")
    if not pattern_text:
        raise ConfigurationError(f"Field {name} has no pattern", field_name=name)
    try:
        matcher = re.compile(pattern_text, re.IGNORECASE)
    except re.error as e:
        raise ConfigurationError(f"Invalid pattern for {name}: {e}", field_name=name)
    if matcher.groups > 1:
        raise ConfigurationError(
            f"Pattern for {name} must have at most one capture group", field_name=name
        )

    try:
        field_type = FieldType(definition.get("type", "numeric"))
    except ValueError:
        raise ConfigurationError(
            f"Unknown field type for {name}: {definition.get('type')}", field_name=name
        )

    expected_range = definition.get("range")
    if expected_range is not None:
        is_pair = (
            isinstance(expected_range, Sequence)
            and not isinstance(expected_range, str)
            and len(expected_range) == 2
        )
        if not is_pair:
            raise ConfigurationError(f"Range for {name} must be (min, max)", field_name=name)
        low, high = expected_range
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (low, high)):
            raise ConfigurationError(f"Range for {name} must be numeric", field_name=name)
        if low > high:
            raise ConfigurationError(
                f"Range for {name} has min {low} above max {high}", field_name=name
            )
        expected_range = (low, high)

    aliases = definition.get("aliases", ())
    if isinstance(aliases, str):
        aliases = (aliases,)
    aliases = tuple(aliases) if isinstance(aliases, Iterable) else (aliases,)
    if not all(isinstance(a, str) for a in aliases):
        raise ConfigurationError(f"Aliases for {name} must be strings", field_name=name)

    return FieldPattern(
        name=field_id,
        matcher=matcher,
        field_type=field_type,
        unit=definition.get("unit", ""),
        expected_range=expected_range,
        aliases=tuple(a.lower() for a in aliases),
        label=definition.get("label", ""),
        expects_variation=definition.get("expects_variation", True),
    )


def _settings_kwargs(settings) -> Dict[str, Any]:
    return {
        "fuzzy_match_threshold": settings.FUZZY_MATCH_THRESHOLD,
        "default_column_half_width": settings.DEFAULT_COLUMN_HALF_WIDTH,
        "max_rows_below_header": settings.MAX_ROWS_BELOW_HEADER,
        "preserve_layout": settings.PRESERVE_LAYOUT,
        "min_confidence_threshold": settings.MIN_FIELD_CONFIDENCE,
        "exclusive_tokens": settings.EXCLUSIVE_TOKENS,
        "context_lines_before": settings.CONTEXT_LINES_BEFORE,
        "context_lines_after": settings.CONTEXT_LINES_AFTER,
        "weights": ScoringWeights.from_settings(settings),
        "high_confidence_threshold": settings.HIGH_CONFIDENCE_THRESHOLD,
        "sequence_variance_threshold": settings.SEQUENCE_VARIANCE_THRESHOLD,
        "min_sequence_length": settings.MIN_SEQUENCE_LENGTH,
        "spatial_tolerance": settings.SPATIAL_TOLERANCE,
        "filter_min_confidence": settings.FILTER_MIN_CONFIDENCE,
        "min_confidence_for_acceptance": settings.MIN_CONFIDENCE_FOR_ACCEPTANCE,
        "min_bounding_box_overlap": settings.MIN_BOUNDING_BOX_OVERLAP,
        "max_filled_hours": settings.MAX_FILLED_HOURS,
    }
