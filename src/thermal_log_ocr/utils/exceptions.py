# ============================================================================
# src/thermal_log_ocr/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the thermal log OCR engine.

Only call-level faults raise. Data-quality problems (missing columns,
unparseable cells, suspicious values) are reported through the parse
outcome and validation result instead.
"""


class ThermalLogError(Exception):
    """Base exception for all thermal log parsing errors."""
    pass


class ConfigurationError(ThermalLogError):
    """Invalid parsing configuration or field registry."""
    def __init__(self, message: str, field_name: str = None):
        super().__init__(message)
        self.field_name = field_name


class InvalidTargetHourError(ThermalLogError):
    """Target hour is null or empty."""
    pass


class ParsingError(ThermalLogError):
    """Unexpected failure while parsing OCR text."""
    pass


class ColumnNotFoundError(ParsingError):
    """Requested hour column could not be located."""
    def __init__(self, message: str, target_hour: str):
        super().__init__(message)
        self.target_hour = target_hour


class ValidationError(ThermalLogError):
    """Error during reading validation."""
    pass


class InvalidReadingError(ValidationError):
    """Reading violates its structural invariants."""
    pass


class InvalidStateTransitionError(ThermalLogError):
    """Parse outcome moved between states illegally."""
    def __init__(self, message: str, from_state: str, to_state: str):
        super().__init__(message)
        self.from_state = from_state
        self.to_state = to_state
