# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
from datetime import datetime, timezone

from thermal_log_ocr.core.config import LogParsingConfig
from thermal_log_ocr.core.log_parser import HourlyLogParser
from thermal_log_ocr.core.context.enums import FieldId
from thermal_log_ocr.core.context.field_match import FieldMatch
from thermal_log_ocr.core.context.hourly_reading import HourlyReading
from thermal_log_ocr.validators.field_validator import validate_field


@pytest.fixture
def sample_stacked_text():
    """Hour headers stacked above their own values"""
    return "02:00\ntemp: 1450F\nflow: 2500 FPM\n03:00\ntemp: 1460F"


@pytest.fixture
def sample_grid_text():
    """Hourly log sheet with hours across and fields down"""
    return (
        "HOURLY THERMAL OXIDIZER LOG\n"
        "Hour          00:00   01:00   02:00   03:00\n"
        "Vapor Inlet   2450    2480    2390    2510\n"
        "Exhaust Temp  1450    1462    1448    1455\n"
        "Pressure      12.5    12.8    12.1    12.6\n"
    )


@pytest.fixture
def sample_sequence_text():
    """Five hour columns filled with an evenly stepping series"""
    return (
        "00:00 01:00 02:00 03:00 04:00\n"
        "100   200   300   400   500\n"
    )


@pytest.fixture
def fixed_time():
    """Deterministic parse timestamp"""
    return datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def config():
    """Standard thermal log configuration"""
    return LogParsingConfig.standard()


@pytest.fixture
def parser(config):
    """Hourly log parser with the standard configuration"""
    return HourlyLogParser(config)


@pytest.fixture
def make_match(config):
    """Factory for field matches validated like the extractor does"""
    def _make(name, value, confidence=0.95, raw_match=None, line=None, position=0):
        field_id = FieldId(name)
        pattern = config.pattern_for(field_id)
        return FieldMatch(
            name=field_id,
            value=value,
            confidence=confidence,
            raw_match=raw_match if raw_match is not None else str(value),
            position=position,
            field_type=pattern.field_type,
            unit=pattern.unit,
            validation=validate_field(pattern, value, confidence, config.min_confidence_for_acceptance),
            line=line,
        )
    return _make


@pytest.fixture
def make_reading(make_match, fixed_time):
    """Factory for readings built from {field: value}"""
    def _make(values, inspection_time="02:00", confidence=0.95):
        matches = tuple(
            make_match(name, value, confidence=confidence, line=index + 1)
            for index, (name, value) in enumerate(values.items())
        )
        return HourlyReading(
            inspection_time=inspection_time,
            field_matches=matches,
            raw_ocr_text="",
            parsed_at=fixed_time,
        )
    return _make


@pytest.fixture
def normal_reading(make_reading):
    """Plausible reading of a running oxidizer"""
    return make_reading({
        "vaporInletFpm": 2437,
        "dilutionAirFpm": 1213,
        "combustionAirFpm": 862,
        "exhaustTempF": 1448,
        "spherePressurePsi": 12.1,
        "inletPpm": 3875.0,
        "outletPpm": 12.4,
        "totalizerScf": 4512873,
    })
