# ============================================================================
# src/thermal_log_ocr/core/log_parser.py
# ============================================================================
"""
Hourly Log Parser

Entry point tying the pipeline together:

    OCR text + target hour
        -> ColumnLocator (normalize, locate, resolve, bounds, region)
        -> FieldExtractor (scored field matches)
        -> AntiHallucinationDetector (flags)
        -> ValidationPipeline (verdict)

Each call returns a ParseOutcome. A missing hour column is an expected
outcome, not an exception; unexpected failures become a PARSE_FAILED
outcome with the error detail. Only a null/empty target hour raises.

The parser holds no mutable state, so one instance can serve many
threads. process_all() parses every hour of a sheet concurrently.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..extractors.column_locator import ColumnLocator, require_target_hour
from ..extractors.field_extractor import FieldExtractor
from ..utils.logging import LogAdapter, log_performance
from ..utils.text_normalizer import parse_hour_label
from ..validators.hallucination_detector import AntiHallucinationDetector
from ..validators.validation_pipeline import ValidationPipeline
from .config import LogParsingConfig
from .context.enums import ParseState
from .context.geometry import SourceGeometry, TextPosition
from .context.hourly_reading import ColumnData, HourlyReading
from .context.outcome import ParseOutcome
from .context.validation import HallucinationFlag, ValidationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ScannedText:
    normalized: str
    positions: Dict[str, TextPosition]
    occurrences: List[TextPosition]
    locator: ColumnLocator


class HourlyLogParser:
    """
    Parses one hour column of an OCR'd thermal log sheet.
    """

    def __init__(self, config: Optional[LogParsingConfig] = None):
        """
        Initialize parser.

        Args:
            config: Immutable parsing configuration (standard if omitted)
        """
        self.config = config or LogParsingConfig.standard()
        self.extractor = FieldExtractor(self.config)
        self.detector = AntiHallucinationDetector(self.config)
        self.pipeline = ValidationPipeline(self.config)

    def _scan(self, ocr_text: str, known_hour_labels: Optional[Iterable[str]]) -> _ScannedText:
        locator = ColumnLocator(self.config, known_hour_labels)
        normalized = locator.normalize(ocr_text)
        return _ScannedText(
            normalized=normalized,
            positions=locator.locate(normalized, normalized=True),
            occurrences=locator.find_all(normalized),
            locator=locator,
        )

    def _extract_column(self, scanned: _ScannedText, position: TextPosition) -> ColumnData:
        locator = scanned.locator
        bounds = locator.column_bounds(position, scanned.positions)
        region = locator.column_region(scanned.normalized, position, bounds, scanned.occurrences)
        return ColumnData(
            hour_label=position.label,
            position=position,
            bounds=bounds,
            field_matches=tuple(self.extractor.extract(region, position)),
            empty_cells=tuple(self.extractor.empty_cells(region, position.label)),
        )

    def parse(
        self,
        ocr_text: str,
        target_hour: str,
        known_hour_labels: Optional[Iterable[str]] = None,
        parsed_at: Optional[datetime] = None,
        reported_confidence: Optional[float] = None,
    ) -> ParseOutcome:
        """
        Extract the reading of one hour column.

        Args:
            ocr_text: Raw OCR text of the sheet
            target_hour: Hour to read ("02:00")
            known_hour_labels: Hour labels printed on the sheet
            parsed_at: Timestamp for the reading, defaults to now
            reported_confidence: Recognizer's own confidence, informational

        Returns:
            ParseOutcome in state EXTRACTED, TARGET_COLUMN_NOT_FOUND or
            PARSE_FAILED

        Raises:
            InvalidTargetHourError: If target_hour is null or empty
        """
        target_hour = require_target_hour(target_hour)
        target_label = parse_hour_label(target_hour) or target_hour
        outcome = ParseOutcome(target_hour=target_label)
        log = LogAdapter(logger, {"target_hour": target_label})
        raw_text = ocr_text or ""

        try:
            scanned = self._scan(raw_text, known_hour_labels)
            position = scanned.locator.resolve(scanned.positions, target_label)

            if position is None:
                log.info(f"Target hour {target_label} not found")
                return outcome.advance(
                    ParseState.TARGET_COLUMN_NOT_FOUND,
                    reading=HourlyReading.empty(target_label, raw_text, parsed_at),
                    reason=f"Target hour not found: {target_label}",
                )

            matches = self._extract_column(scanned, position).field_matches
            kwargs = {"parsed_at": parsed_at} if parsed_at is not None else {}
            reading = HourlyReading(
                inspection_time=position.label,
                field_matches=tuple(matches),
                raw_ocr_text=raw_text,
                reported_confidence=reported_confidence,
                **kwargs,
            )

            log.info(
                f"Extracted {len(matches)} fields from column {position.label} "
                f"(confidence {reading.overall_confidence:.2f})"
            )
            return outcome.advance(
                ParseState.EXTRACTED,
                reading=reading,
                column_label=position.label,
            )

        except Exception as e:
            log.warning(f"Parsing failed: {e}", exc_info=True)
            return outcome.advance(
                ParseState.PARSE_FAILED,
                reading=HourlyReading.empty(target_label, raw_text, parsed_at),
                reason=f"Parsing error: {e}",
            )

    def extract_columns(
        self,
        ocr_text: str,
        known_hour_labels: Optional[Iterable[str]] = None,
    ) -> Dict[str, ColumnData]:
        """
        Raw extraction of every located hour column.

        Args:
            ocr_text: Raw OCR text of the sheet
            known_hour_labels: Hour labels printed on the sheet

        Returns:
            Hour label -> ColumnData, in hour order
        """
        scanned = self._scan(ocr_text or "", known_hour_labels)
        columns = {}
        for label in sorted(scanned.positions):
            columns[label] = self._extract_column(scanned, scanned.positions[label])
        return columns

    def detect(
        self,
        reading: HourlyReading,
        columns=None,
        geometry: Optional[SourceGeometry] = None,
    ) -> List[HallucinationFlag]:
        """Run the hallucination detector on a reading."""
        return self.detector.detect(reading, columns, geometry)

    def validate(
        self,
        reading: HourlyReading,
        hallucination_flags: Iterable[HallucinationFlag] = (),
        geometry: Optional[SourceGeometry] = None,
        strict_mode: bool = True,
        columns=None,
    ) -> ValidationResult:
        """Run the validation pipeline on a reading."""
        return self.pipeline.validate(reading, hallucination_flags, geometry, strict_mode, columns)

    def process(
        self,
        ocr_text: str,
        target_hour: str,
        known_hour_labels: Optional[Iterable[str]] = None,
        geometry: Optional[SourceGeometry] = None,
        strict_mode: bool = True,
        parsed_at: Optional[datetime] = None,
        columns: Optional[Dict[str, ColumnData]] = None,
    ) -> ParseOutcome:
        """
        Parse, detect and validate one hour column.

        Args:
            ocr_text: Raw OCR text of the sheet
            target_hour: Hour to read
            known_hour_labels: Hour labels printed on the sheet
            geometry: Optional OCR token geometry
            strict_mode: Every validation check must pass
            parsed_at: Timestamp for the reading
            columns: Pre-extracted columns of the sheet (computed if omitted)

        Returns:
            VALIDATED outcome carrying the reading with flagged fields
            filtered out, or the structural failure from parse()

        Raises:
            InvalidTargetHourError: If target_hour is null or empty
        """
        outcome = self.parse(ocr_text, target_hour, known_hour_labels, parsed_at)
        if outcome.state != ParseState.EXTRACTED:
            return outcome

        try:
            if columns is None:
                columns = self.extract_columns(ocr_text, known_hour_labels)
            flags = self.detect(outcome.reading, columns, geometry)
            validation = self.validate(outcome.reading, flags, geometry, strict_mode, columns)
            filtered = self.detector.filter_reading(outcome.reading, flags, strict_mode)
        except Exception as e:
            logger.warning(f"Validation of {outcome.target_hour} failed: {e}", exc_info=True)
            reading = outcome.reading
            return outcome.advance(
                ParseState.PARSE_FAILED,
                reading=HourlyReading.empty(reading.inspection_time, reading.raw_ocr_text, reading.parsed_at),
                reason=f"Parsing error: {e}",
            )

        return outcome.advance(
            ParseState.VALIDATED,
            hallucination_flags=flags,
            validation=validation,
            filtered_reading=filtered,
            columns=tuple(columns.values()),
        )

    @log_performance(logger, "Sheet processing")
    def process_all(
        self,
        ocr_text: str,
        hours: Optional[Iterable[str]] = None,
        known_hour_labels: Optional[Iterable[str]] = None,
        geometry: Optional[SourceGeometry] = None,
        strict_mode: bool = True,
        max_workers: int = 4,
    ) -> Dict[str, ParseOutcome]:
        """
        Process several hours of one sheet concurrently.

        Args:
            ocr_text: Raw OCR text of the sheet
            hours: Hours to read (every located hour if omitted)
            known_hour_labels: Hour labels printed on the sheet
            geometry: Optional OCR token geometry
            strict_mode: Every validation check must pass
            max_workers: Thread pool size

        Returns:
            Requested hour -> ParseOutcome, in request order
        """
        columns = self.extract_columns(ocr_text, known_hour_labels)
        if hours is None:
            hours = list(columns)
        hours = [require_target_hour(hour) for hour in hours]

        def _process(hour: str) -> ParseOutcome:
            return self.process(
                ocr_text,
                hour,
                known_hour_labels=known_hour_labels,
                geometry=geometry,
                strict_mode=strict_mode,
                columns=columns,
            )

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            outcomes = list(executor.map(_process, hours))

        return dict(zip(hours, outcomes))


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def parse_hourly_log(
    ocr_text: str,
    target_hour: str,
    known_hour_labels: Optional[Iterable[str]] = None,
    strict_mode: bool = True,
    config: Optional[LogParsingConfig] = None,
) -> ParseOutcome:
    """
    Parse, detect and validate one hour with a one-off parser.

    Args:
        ocr_text: Raw OCR text of the sheet
        target_hour: Hour to read
        known_hour_labels: Hour labels printed on the sheet
        strict_mode: Every validation check must pass
        config: Optional parsing configuration

    Returns:
        ParseOutcome
    """
    parser = HourlyLogParser(config)
    return parser.process(ocr_text, target_hour, known_hour_labels, strict_mode=strict_mode)
