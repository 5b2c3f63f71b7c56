# ============================================================================
# FILE: tests/unit/test_validation_pipeline.py
# ============================================================================
"""
Unit tests for the validation pipeline and report
"""

import pytest

from thermal_log_ocr.core.context.enums import HallucinationType, Verdict
from thermal_log_ocr.core.context.geometry import ColumnBounds, OcrToken, SourceGeometry, TextPosition
from thermal_log_ocr.core.context.hourly_reading import ColumnData
from thermal_log_ocr.core.context.validation import HallucinationFlag
from thermal_log_ocr.validators.validation_pipeline import (
    ValidationPipeline,
    generate_validation_report,
    validate_reading,
)


@pytest.fixture
def pipeline(config):
    return ValidationPipeline(config)


@pytest.fixture
def header_tokens():
    return (
        OcrToken(text="01:00", bbox=(90, 10, 110, 20)),
        OcrToken(text="02:00", bbox=(190, 10, 210, 20)),
        OcrToken(text="03:00", bbox=(290, 10, 310, 20)),
    )


def _value_token(bbox):
    return OcrToken(text="1448", bbox=bbox, hour_label="02:00", field_name="exhaustTempF")


def test_clean_reading_accepted(pipeline, normal_reading):
    """Test a clean, confident reading is accepted"""
    result = pipeline.validate(normal_reading)

    assert result.is_valid
    assert not result.requires_manual_review
    assert result.verdict == Verdict.ACCEPTED
    assert result.overall_confidence == pytest.approx(0.88)
    assert [c.name for c in result.checks] == [
        "hallucination_detection",
        "regex_patterns",
        "confidence_thresholds",
        "business_logic",
        "pattern_consistency",
    ]


def test_hallucination_flags_reject(pipeline, normal_reading):
    """Test any hallucination flag is a hard error"""
    flag = HallucinationFlag(
        type=HallucinationType.PATTERN_ANOMALY,
        description="values step evenly",
        affected_field="vaporInletFpm",
    )

    result = pipeline.validate(normal_reading, [flag])

    assert not result.is_valid
    assert result.verdict == Verdict.REJECTED
    assert "1 potential hallucination(s) detected" in result.errors
    assert not result.check("hallucination_detection").is_valid
    assert result.check("hallucination_detection").confidence == 0.3


def test_round_number_needs_review(pipeline, make_reading):
    """Test round values only ask for review"""
    reading = make_reading({"vaporInletFpm": 2500, "exhaustTempF": 1448})

    result = pipeline.validate(reading)

    assert result.is_valid
    assert result.verdict == Verdict.MANUAL_REVIEW_REQUIRED
    assert "Round number detected for vaporInletFpm: 2500" in result.warnings


def test_regex_pattern_failure(pipeline, make_reading):
    """Test values outside the strict format fail"""
    reading = make_reading({"spherePressurePsi": 12.125})

    check = pipeline.check_regex_patterns(reading)

    assert not check.is_valid
    assert check.errors == ("spherePressurePsi value '12.125' does not match expected format",)


def test_low_confidence_rejected(pipeline, make_reading):
    """Test overall confidence below the floor is an error"""
    reading = make_reading({"exhaustTempF": 1448, "spherePressurePsi": 12.1}, confidence=0.6)

    result = pipeline.validate(reading)

    assert result.verdict == Verdict.REJECTED
    assert "Overall confidence 0.60 below required 0.80" in result.errors
    assert "exhaustTempF confidence 0.60 below 0.80" in result.warnings


def test_business_error_rejected(pipeline, make_reading):
    """Test business-rule errors block acceptance"""
    reading = make_reading({"exhaustTempF": 450})

    result = pipeline.validate(reading)

    assert not result.is_valid
    assert not result.check("business_logic").is_valid
    assert result.check("business_logic").confidence == 0.5


def test_errors_block_outside_strict_mode(pipeline, make_reading):
    """Test errors block acceptance regardless of strict mode"""
    reading = make_reading({"exhaustTempF": 450})
    assert not pipeline.validate(reading, strict_mode=False).is_valid


def test_too_many_filled_hours(pipeline, make_match, normal_reading):
    """Test more filled hours than expected is a warning"""
    columns = [
        ColumnData(
            hour_label=f"{hour:02d}:00",
            position=TextPosition(line=0, column=hour * 6, absolute_position=hour * 6, confidence=1.0),
            bounds=ColumnBounds(hour * 6, hour * 6 + 6),
            field_matches=(make_match("exhaustTempF", 1400 + hour * 7),),
        )
        for hour in range(9)
    ]

    check = pipeline.check_pattern_consistency(normal_reading, columns)

    assert check.is_valid
    assert check.warnings == ("9 hour columns filled, more than the expected 8",)


def test_regular_progression_warning(pipeline, make_reading):
    """Test an even progression is also a consistency warning"""
    reading = make_reading({
        "vaporInletFpm": 1000,
        "dilutionAirFpm": 1100,
        "combustionAirFpm": 1200,
    })

    check = pipeline.check_pattern_consistency(reading)

    assert check.warnings == ("Field values show an unnaturally regular progression",)


def test_bounding_box_check_only_with_geometry(pipeline, make_reading, header_tokens):
    """Test the bounding box check runs only when boxes are supplied"""
    reading = make_reading({"exhaustTempF": 1448})
    geometry = SourceGeometry(tokens=header_tokens + (_value_token((190, 40, 210, 50)),))

    without = pipeline.validate(reading)
    with_boxes = pipeline.validate(reading, geometry=geometry)

    assert without.check("bounding_boxes") is None
    assert with_boxes.check("bounding_boxes").is_valid
    assert with_boxes.check("bounding_boxes").warnings == ()


def test_bounding_box_low_overlap(pipeline, make_reading, header_tokens):
    """Test a value box mostly outside its column band"""
    reading = make_reading({"exhaustTempF": 1448})
    geometry = SourceGeometry(tokens=header_tokens + (_value_token((240, 40, 280, 50)),))

    check = pipeline.check_bounding_boxes(reading, geometry)

    assert check.is_valid
    assert check.warnings == ("exhaustTempF box overlaps its expected region by 25% (minimum 70%)",)


def test_bounding_box_expected_bounds(pipeline, make_reading):
    """Test explicit expected regions take precedence"""
    reading = make_reading({"exhaustTempF": 1448})
    geometry = SourceGeometry(
        tokens=[_value_token((50, 50, 60, 60))],
        expected_bounds={"exhaustTempF": (0, 0, 100, 100)},
    )

    check = pipeline.check_bounding_boxes(reading, geometry)

    assert check.is_valid
    assert check.warnings == ()


@pytest.mark.parametrize("bbox", [(-10, 40, 10, 50), (190, 40, 190, 50), (190, 40, 260, 50)])
def test_unreasonable_bounding_box(pipeline, make_reading, header_tokens, bbox):
    """Test malformed, empty or out-of-image boxes are errors"""
    reading = make_reading({"exhaustTempF": 1448})
    geometry = SourceGeometry(
        tokens=header_tokens + (_value_token(bbox),),
        image_width=250,
        image_height=100,
    )

    check = pipeline.check_bounding_boxes(reading, geometry)

    assert not check.is_valid
    assert check.errors[0].startswith("Unreasonable bounding box for exhaustTempF")


def test_generate_validation_report(pipeline, make_reading):
    """Test the plain-text report"""
    reading = make_reading({"vaporInletFpm": 2500, "exhaustTempF": 1448})
    result = pipeline.validate(reading)

    report = generate_validation_report(result, reading)

    assert report.startswith("OCR VALIDATION REPORT")
    assert "Status: VALID" in report
    assert "Verdict: manualReviewRequired" in report
    assert "[PASS] regex_patterns (90%)" in report
    assert "WARNINGS:" in report
    assert "ERRORS:" not in report
    assert "exhaustTempF: 1448 °F (95%)" in report


def test_report_without_reading(pipeline, make_reading):
    """Test the report renders from a result alone"""
    result = pipeline.validate(make_reading({"exhaustTempF": 450}))

    report = generate_validation_report(result)

    assert "Status: INVALID" in report
    assert "[FAIL] business_logic (50%)" in report
    assert "FIELDS:" not in report


def test_validate_reading_convenience(normal_reading):
    """Test convenience validation function"""
    assert validate_reading(normal_reading).verdict == Verdict.ACCEPTED
