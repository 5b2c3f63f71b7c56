# ============================================================================
# FILE: tests/unit/test_field_extractor.py
# ============================================================================
"""
Unit tests for field extraction and candidate scoring
"""

import pytest

from thermal_log_ocr.constants import STANDARD_FIELD_DEFINITIONS
from thermal_log_ocr.core.config import LogParsingConfig
from thermal_log_ocr.core.confidence import DISTINCTIVENESS, RANGE, SPATIAL
from thermal_log_ocr.core.context.enums import FieldId, FieldType
from thermal_log_ocr.core.context.geometry import ColumnBounds, ColumnRegion, RegionLine
from thermal_log_ocr.extractors.column_locator import ColumnLocator
from thermal_log_ocr.extractors.field_extractor import FieldExtractor, extract_fields, parse_value


def _region(config, text, target_hour):
    locator = ColumnLocator(config)
    normalized = locator.normalize(text)
    positions = locator.locate(normalized, normalized=True)
    target = positions[target_hour]
    bounds = locator.column_bounds(target, positions)
    return locator.column_region(normalized, target, bounds), target


def _plain_region(*lines, header_line=0):
    """Region built from (line_index, text) pairs"""
    texts = dict(lines)
    source = [texts.get(index, "") for index in range(max(texts) + 1)]
    region_lines = []
    offset = 0
    for index, text in enumerate(source):
        if index in texts:
            region_lines.append(RegionLine(line_index=index, absolute_offset=offset, text=text))
        offset += len(text) + 1
    return ColumnRegion(
        header_line=header_line,
        bounds=ColumnBounds(0, 40),
        lines=tuple(region_lines),
        source_lines=tuple(source),
    )


@pytest.fixture
def temperature_only():
    return LogParsingConfig.from_mapping({"exhaustTempF": STANDARD_FIELD_DEFINITIONS["exhaustTempF"]})


@pytest.mark.parametrize("text,field_type,expected", [
    ("1450", FieldType.TEMPERATURE, 1450),
    ("2500.4", FieldType.FLOW_RATE, 2500),
    ("12.5", FieldType.PRESSURE, 12.5),
    ("3875", FieldType.CONCENTRATION, 3875.0),
    ("12", FieldType.NUMERIC, 12),
    ("1.5", FieldType.NUMERIC, 1.5),
    ("abc", FieldType.FLOW_RATE, None),
    ("", FieldType.PRESSURE, None),
    ("02:00", FieldType.TIME, "02:00"),
])
def test_parse_value(text, field_type, expected):
    """Test captured text parses into the field's value type"""
    assert parse_value(text, field_type) == expected


def test_extract_stacked_column(config, sample_stacked_text):
    """Test extraction of the stacked scenario"""
    region, target = _region(config, sample_stacked_text, "02:00")

    matches = FieldExtractor(config).extract(region, target)

    assert {m.name: m.value for m in matches} == {
        FieldId.VAPOR_INLET_FPM: 2500,
        FieldId.EXHAUST_TEMP_F: 1450,
    }
    assert all(m.confidence == 1.0 for m in matches)
    assert all(m.validation.is_valid for m in matches)


def test_extract_grid_column(config, sample_grid_text):
    """Test extraction of one column of an aligned sheet"""
    region, target = _region(config, sample_grid_text, "02:00")

    matches = FieldExtractor(config).extract(region, target)

    assert [m.name for m in matches] == [
        FieldId.VAPOR_INLET_FPM,
        FieldId.EXHAUST_TEMP_F,
        FieldId.SPHERE_PRESSURE_PSI,
    ]
    assert [m.value for m in matches] == [2390, 1448, 12.1]
    assert matches[2].unit == "PSI"
    assert matches[0].line == 2


def test_extract_positions_point_at_value(config, sample_grid_text):
    """Test match positions are offsets into the normalized text"""
    region, target = _region(config, sample_grid_text, "02:00")
    normalized = ColumnLocator(config).normalize(sample_grid_text)

    for match in FieldExtractor(config).extract(region, target):
        assert normalized[match.position:match.position + len(match.raw_match)] == match.raw_match


def test_exclusive_tokens_fill_one_field(config, sample_stacked_text):
    """Test one token fills at most one field"""
    region, target = _region(config, sample_stacked_text, "02:00")

    matches = FieldExtractor(config).extract(region, target)
    spans = [(m.line, m.position) for m in matches]
    assert len(spans) == len(set(spans))


def test_independent_selection_reuses_tokens(config, sample_stacked_text):
    """Test fields pick independently without exclusive tokens"""
    independent = config.with_overrides(exclusive_tokens=False)
    region, target = _region(independent, sample_stacked_text, "02:00")

    matches = FieldExtractor(independent).extract(region, target)
    names = {m.name for m in matches}

    assert FieldId.VAPOR_INLET_FPM in names
    assert FieldId.DILUTION_AIR_FPM in names
    assert len(matches) > 2


def test_labelled_rows_of_same_type_not_swapped(config):
    """Test a value goes to the field labelled on its own row, not the neighbouring one"""
    text = (
        "Hour          01:00   02:00\n"
        "Vapor FPM     2480    2510\n"
        "Dilution FPM  1190    1210\n"
        "Temp F        1460    1452\n"
    )
    region, target = _region(config, text, "02:00")
    extractor = FieldExtractor(config)

    values = {m.name: m.value for m in extractor.extract(region, target)}
    dilution = extractor.scores(region, target)[FieldId.DILUTION_AIR_FPM]

    assert values[FieldId.VAPOR_INLET_FPM] == 2510
    assert values[FieldId.DILUTION_AIR_FPM] == 1210
    assert values[FieldId.EXHAUST_TEMP_F] == 1452
    assert [c.alias_distance for c in dilution[:2]] == [1, 0]
    assert dilution[0].raw_score == dilution[1].raw_score


def test_empty_cells_from_blank_markers(config):
    """Test dash and N/A cells of the column become blank-cell tokens"""
    text = (
        "Hour          01:00   02:00\n"
        "Exhaust Temp  1460    1448\n"
        "Pressure      12.5    -\n"
        "Vapor Inlet   2480    N/A\n"
    )
    region, target = _region(config, text, "02:00")

    tokens = FieldExtractor(config).empty_cells(region, "02:00")

    assert {(t.line, t.field_name) for t in tokens} == {
        (2, None),
        (2, "spherePressurePsi"),
        (3, None),
        (3, "vaporInletFpm"),
        (3, "inletPpm"),
    }
    assert {t.text for t in tokens} == {"-", "N A"}
    assert all(t.is_empty and t.hour_label == "02:00" for t in tokens)


def test_no_empty_cells_in_filled_column(config, sample_grid_text):
    """Test a fully written column has no blank-cell tokens"""
    region, _ = _region(config, sample_grid_text, "02:00")
    assert FieldExtractor(config).empty_cells(region, "02:00") == []


def test_range_signal_sign(temperature_only):
    """Test in-range values score above out-of-range values"""
    extractor = FieldExtractor(temperature_only)
    region = _plain_region((1, "1450"), (2, "2500"))

    scored = extractor.scores(region)[FieldId.EXHAUST_TEMP_F]
    inside, outside = scored

    assert inside.signals[RANGE] == 1.0
    assert outside.signals[RANGE] == -1.0
    assert inside.raw_score - outside.raw_score == pytest.approx(0.55)


def test_out_of_range_value_kept_with_warning(temperature_only):
    """Test an implausible value is extracted with reduced confidence"""
    region = _plain_region((1, "2500"))

    matches = FieldExtractor(temperature_only).extract(region)

    assert len(matches) == 1
    assert matches[0].value == 2500
    assert matches[0].confidence == pytest.approx(0.875)
    assert matches[0].validation.is_valid
    assert "outside expected range" in matches[0].validation.warnings[0]


def test_min_confidence_threshold(temperature_only):
    """Test candidates below the confidence floor are dropped"""
    strict = temperature_only.with_overrides(min_confidence_threshold=0.9)
    region = _plain_region((1, "2500"))

    assert FieldExtractor(strict).extract(region) == []


def test_header_line_candidate_penalized(temperature_only):
    """Test a value on the header line gets little spatial credit"""
    region = _plain_region((0, "1450"), (1, "1460"))

    scored = FieldExtractor(temperature_only).scores(region)[FieldId.EXHAUST_TEMP_F]

    assert scored[0].signals[SPATIAL] == 0.3
    assert scored[1].signals[SPATIAL] == 1.0


def test_repeated_value_less_distinctive(temperature_only):
    """Test a value repeated in the column scores lower"""
    region = _plain_region((1, "1450"), (2, "1450"))

    scored = FieldExtractor(temperature_only).scores(region)[FieldId.EXHAUST_TEMP_F]

    assert scored[0].signals[DISTINCTIVENESS] == 0.8


def test_empty_region(config):
    """Test an empty region yields no matches"""
    region = ColumnRegion(header_line=0, bounds=ColumnBounds(0, 10))
    assert FieldExtractor(config).extract(region) == []


def test_extract_fields_convenience(temperature_only):
    """Test convenience extraction function"""
    region = _plain_region((1, "1450"))
    matches = extract_fields(region, temperature_only)
    assert matches[0].value == 1450
