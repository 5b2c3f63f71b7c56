# ============================================================================
# FILE: tests/unit/test_log_parser.py
# ============================================================================
"""
Unit tests for the hourly log parser
"""

import pytest

from thermal_log_ocr import parse_hourly_log
from thermal_log_ocr.constants import STANDARD_HOUR_LABELS
from thermal_log_ocr.core.context.enums import FieldId, HallucinationType, ParseState, Verdict
from thermal_log_ocr.core.context.geometry import OcrToken, SourceGeometry
from thermal_log_ocr.utils.exceptions import InvalidTargetHourError


def test_parse_stacked_sheet(parser, sample_stacked_text):
    """Test extraction when each hour heads its own block"""
    outcome = parser.parse(sample_stacked_text, "02:00")

    assert outcome.state == ParseState.EXTRACTED
    assert outcome.column_label == "02:00"
    assert outcome.reading.inspection_time == "02:00"
    assert outcome.reading.values == {"vaporInletFpm": 2500, "exhaustTempF": 1450}
    assert outcome.reading.raw_ocr_text == sample_stacked_text


def test_process_stacked_sheet(parser, sample_stacked_text):
    """Test round values in a clean reading send it to review"""
    outcome = parser.process(sample_stacked_text, "02:00")

    assert outcome.state == ParseState.VALIDATED
    assert outcome.hallucination_flags == ()
    assert outcome.validation.is_valid
    assert outcome.verdict == Verdict.MANUAL_REVIEW_REQUIRED
    assert [c.hour_label for c in outcome.columns] == ["02:00", "03:00"]


def test_process_grid_sheet_accepted(parser, sample_grid_text):
    """Test a clean column of an aligned sheet is accepted"""
    outcome = parser.process(sample_grid_text, "02:00")

    assert outcome.state == ParseState.VALIDATED
    assert outcome.reading.values == {
        "vaporInletFpm": 2390,
        "exhaustTempF": 1448,
        "spherePressurePsi": 12.1,
    }
    assert outcome.hallucination_flags == ()
    assert outcome.verdict == Verdict.ACCEPTED
    assert outcome.filtered_reading.values == outcome.reading.values


def test_target_hour_not_found(parser, sample_grid_text):
    """Test a missing hour is an expected outcome"""
    outcome = parser.process(sample_grid_text, "09:00")

    assert outcome.state == ParseState.TARGET_COLUMN_NOT_FOUND
    assert outcome.reason == "Target hour not found: 09:00"
    assert outcome.reading.is_empty
    assert outcome.reading.inspection_time == "09:00"
    assert outcome.is_terminal
    assert not outcome.found
    assert outcome.verdict is None


def test_empty_ocr_text(parser):
    """Test empty OCR text finds no column"""
    outcome = parser.parse("", "02:00")
    assert outcome.state == ParseState.TARGET_COLUMN_NOT_FOUND


@pytest.mark.parametrize("target", [None, "", "  "])
def test_empty_target_hour_raises(parser, sample_grid_text, target):
    """Test a null or empty target hour raises"""
    with pytest.raises(InvalidTargetHourError):
        parser.parse(sample_grid_text, target)


def test_fuzzy_target_hour(parser, sample_grid_text):
    """Test a target within the same hour reads that column"""
    outcome = parser.parse(sample_grid_text, "02:15")

    assert outcome.state == ParseState.EXTRACTED
    assert outcome.target_hour == "02:15"
    assert outcome.column_label == "02:00"
    assert outcome.reading.inspection_time == "02:00"


def test_target_hour_normalized(parser, sample_grid_text):
    """Test the target hour is normalized"""
    outcome = parser.parse(sample_grid_text, "2:00")
    assert outcome.target_hour == "02:00"
    assert outcome.column_label == "02:00"


def test_parse_is_deterministic(parser, sample_grid_text, fixed_time):
    """Test repeated parses give equal outcomes"""
    first = parser.parse(sample_grid_text, "02:00", parsed_at=fixed_time)
    second = parser.parse(sample_grid_text, "02:00", parsed_at=fixed_time)

    assert first == second
    assert first.reading.parsed_at == fixed_time


def test_reported_confidence_passed_through(parser, sample_grid_text):
    """Test the recognizer confidence is kept on the reading"""
    outcome = parser.parse(sample_grid_text, "02:00", reported_confidence=0.72)

    assert outcome.reading.reported_confidence == 0.72
    assert outcome.reading.overall_confidence == 1.0


def test_perfect_sequence_sheet_rejected(parser, sample_sequence_text):
    """Test evenly stepping hourly values are flagged"""
    outcome = parser.process(sample_sequence_text, "02:00")

    assert outcome.state == ParseState.VALIDATED
    assert outcome.reading.value_of(FieldId.VAPOR_INLET_FPM) == 300
    assert HallucinationType.PATTERN_ANOMALY in [f.type for f in outcome.hallucination_flags]
    assert outcome.validation.requires_manual_review
    assert not outcome.validation.is_valid
    assert outcome.verdict == Verdict.REJECTED


def test_digit_run_headers_with_known_labels(parser):
    """Test HHMM headers are read when the sheet's hours are known"""
    text = "Hour  0100  0200  0300\nFlow  2437  2466  2398"

    outcome = parser.parse(text, "02:00", known_hour_labels=STANDARD_HOUR_LABELS)
    assert outcome.state == ParseState.EXTRACTED
    assert outcome.reading.value_of("vaporInletFpm") == 2466

    outcome = parser.parse(text, "02:00")
    assert outcome.state == ParseState.TARGET_COLUMN_NOT_FOUND


def test_extraction_fault_becomes_parse_failed(parser, sample_grid_text, monkeypatch):
    """Test unexpected errors do not escape parse"""
    def _boom(*args, **kwargs):
        raise RuntimeError("pattern engine failure")

    monkeypatch.setattr(parser.extractor, "extract", _boom)

    outcome = parser.parse(sample_grid_text, "02:00")

    assert outcome.state == ParseState.PARSE_FAILED
    assert outcome.reason == "Parsing error: pattern engine failure"
    assert outcome.reading.is_empty


def test_validation_fault_becomes_parse_failed(parser, sample_grid_text, monkeypatch):
    """Test unexpected errors after extraction do not escape process"""
    def _boom(*args, **kwargs):
        raise RuntimeError("detector failure")

    monkeypatch.setattr(parser.detector, "detect", _boom)

    outcome = parser.process(sample_grid_text, "02:00")

    assert outcome.state == ParseState.PARSE_FAILED
    assert outcome.reason == "Parsing error: detector failure"
    assert outcome.reading.is_empty
    assert outcome.reading.inspection_time == "02:00"
    assert outcome.reading.raw_ocr_text == sample_grid_text


def test_extract_columns(parser, sample_grid_text):
    """Test every located column is extracted in hour order"""
    columns = parser.extract_columns(sample_grid_text)

    assert list(columns) == ["00:00", "01:00", "02:00", "03:00"]
    assert columns["01:00"].value_of(FieldId.EXHAUST_TEMP_F) == 1462
    assert all(column.is_filled for column in columns.values())


def test_process_all(parser, sample_grid_text):
    """Test every hour of a sheet is processed"""
    outcomes = parser.process_all(sample_grid_text)

    assert list(outcomes) == ["00:00", "01:00", "02:00", "03:00"]
    assert all(o.state == ParseState.VALIDATED for o in outcomes.values())
    assert outcomes["03:00"].reading.value_of(FieldId.VAPOR_INLET_FPM) == 2510


def test_process_all_requested_hours(parser, sample_grid_text):
    """Test requested hours keep their order and missing hours are reported"""
    outcomes = parser.process_all(sample_grid_text, hours=["02:00", "09:00"], max_workers=2)

    assert list(outcomes) == ["02:00", "09:00"]
    assert outcomes["02:00"].state == ParseState.VALIDATED
    assert outcomes["09:00"].state == ParseState.TARGET_COLUMN_NOT_FOUND


def test_process_all_rejects_empty_hour(parser, sample_grid_text):
    """Test an empty requested hour raises before processing"""
    with pytest.raises(InvalidTargetHourError):
        parser.process_all(sample_grid_text, hours=["02:00", ""])


def test_parse_hourly_log(sample_grid_text):
    """Test convenience parse function"""
    outcome = parse_hourly_log(sample_grid_text, "02:00")
    assert outcome.verdict == Verdict.ACCEPTED


def test_outcome_to_dict(parser, sample_grid_text):
    """Test outcome serialization"""
    data = parser.process(sample_grid_text, "02:00").to_dict()

    assert data["state"] == "validated"
    assert data["verdict"] == "accepted"
    assert data["reading"]["fields"]["exhaustTempF"]["value"] == 1448


def test_negative_pressure_rejected(parser):
    """Test a negative pressure read with high confidence is rejected"""
    outcome = parser.process("02:00\npressure: -5.0 PSI", "02:00")

    match = outcome.reading.get(FieldId.SPHERE_PRESSURE_PSI)
    assert match.value == -5.0
    assert match.confidence == pytest.approx(0.93)
    assert outcome.reading.get(FieldId.INLET_PPM) is None

    types = [f.type for f in outcome.hallucination_flags]
    assert types == [HallucinationType.CONFIDENCE_INCONSISTENCY]
    assert "Sphere pressure must be positive: -5.0 PSI" in outcome.validation.errors
    assert not outcome.validation.check("regex_patterns").is_valid
    assert outcome.verdict == Verdict.REJECTED


def test_empty_cell_content_rejected(parser, sample_grid_text):
    """Test content attributed to a blank cell invalidates the reading"""
    geometry = SourceGeometry(tokens=[
        OcrToken(text="", hour_label="02:00", field_name="exhaustTempF", is_empty=True),
    ])

    outcome = parser.process(sample_grid_text, "02:00", geometry=geometry)

    types = [f.type for f in outcome.hallucination_flags]
    assert HallucinationType.EMPTY_CELL_WITH_CONTENT in types
    assert not outcome.validation.is_valid
    assert outcome.verdict == Verdict.REJECTED
    assert outcome.reading.value_of("exhaustTempF") == 1448
    assert outcome.filtered_reading.value_of("exhaustTempF") is None


def test_repeated_value_across_columns_stays_aligned(parser):
    """Test a flat reading repeated in the next column is not flagged as misplaced"""
    text = "      02:00  03:00\nPSI   12.3   12.3\n"
    geometry = SourceGeometry(tokens=[
        OcrToken(text="02:00", bbox=(100, 0, 150, 10)),
        OcrToken(text="03:00", bbox=(200, 0, 250, 10)),
        OcrToken(text="PSI", bbox=(0, 20, 30, 30)),
        OcrToken(text="12.3", bbox=(110, 20, 140, 30)),
        OcrToken(text="12.3", bbox=(210, 20, 240, 30)),
    ])

    outcome = parser.process(text, "03:00", geometry=geometry)

    assert outcome.reading.values == {"spherePressurePsi": 12.3}
    assert outcome.hallucination_flags == ()
    assert outcome.validation.check("bounding_boxes").is_valid
    assert outcome.verdict != Verdict.REJECTED


def test_value_in_cell_marked_blank_is_filtered(parser):
    """Test a value read from a cell written off as N/A is flagged and filtered out"""
    text = "02:00\ntemp: 1448F\npsi: N/A 5\n03:00\ntemp: 1460F"

    outcome = parser.process(text, "02:00")

    flagged = {(f.type, f.affected_field) for f in outcome.hallucination_flags}
    assert outcome.reading.values == {"exhaustTempF": 1448, "spherePressurePsi": 5.0}
    assert (HallucinationType.EMPTY_CELL_WITH_CONTENT, "spherePressurePsi") in flagged
    assert outcome.filtered_reading.values == {"exhaustTempF": 1448}
    assert outcome.verdict == Verdict.REJECTED
    assert outcome.to_dict()["filtered_reading"]["field_count"] == 1
