# ============================================================================
# FILE: src/thermal_log_ocr/validators/rule_validator.py
# ============================================================================
"""
Rule-Based Validator

Deterministic operating-envelope rules for a thermal oxidizer reading:
1. Exhaust temperature floor (destruction efficiency) and ceiling
2. Sphere pressure must be positive and below the vessel limit
3. Vapor inlet flow should not fall below dilution air flow
4. Outlet concentration should be a small fraction of inlet

Rules only fire when the fields they compare were extracted.
"""

import logging
from typing import List, Optional, Tuple

from ..constants import BUSINESS_LIMITS
from ..core.context.enums import FieldId
from ..core.context.hourly_reading import HourlyReading

logger = logging.getLogger(__name__)


def _number(reading: HourlyReading, field_id: FieldId) -> Optional[float]:
    value = reading.value_of(field_id)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


class RuleValidator:
    """
    Business-logic validation for an hourly reading.

    Checks:
    1. Exhaust temperature within the operating envelope
    2. Sphere pressure positive and plausible
    3. Flow balance between vapor inlet and dilution air
    4. Destruction ratio between outlet and inlet PPM
    """

    def __init__(self, limits: Optional[dict] = None):
        self.limits = dict(BUSINESS_LIMITS)
        if limits:
            self.limits.update(limits)

    def validate(self, reading: HourlyReading) -> Tuple[List[str], List[str]]:
        """
        Validate a reading against the business rules.

        Args:
            reading: Reading to validate

        Returns:
            (errors, warnings)
        """
        errors: List[str] = []
        warnings: List[str] = []

        # Check 1: Exhaust temperature
        temp = _number(reading, FieldId.EXHAUST_TEMP_F)
        if temp is not None:
            if temp < self.limits["exhaust_temp_min"]:
                errors.append(
                    f"Exhaust temperature too low: {temp} °F "
                    f"(minimum {self.limits['exhaust_temp_min']} °F)"
                )
            elif temp > self.limits["exhaust_temp_max"]:
                warnings.append(f"Exhaust temperature unusually high: {temp} °F")

        # Check 2: Sphere pressure
        pressure = _number(reading, FieldId.SPHERE_PRESSURE_PSI)
        if pressure is not None:
            if pressure <= 0:
                errors.append(f"Sphere pressure must be positive: {pressure} PSI")
            elif pressure > self.limits["sphere_pressure_max"]:
                warnings.append(f"Sphere pressure unusually high: {pressure} PSI")

        # Check 3: Flow balance
        vapor = _number(reading, FieldId.VAPOR_INLET_FPM)
        dilution = _number(reading, FieldId.DILUTION_AIR_FPM)
        if vapor is not None and dilution is not None and vapor < dilution:
            warnings.append(
                f"Vapor inlet flow ({vapor} FPM) is lower than dilution air flow ({dilution} FPM)"
            )

        # Check 4: Destruction ratio
        inlet = _number(reading, FieldId.INLET_PPM)
        outlet = _number(reading, FieldId.OUTLET_PPM)
        ratio = self.limits["outlet_to_inlet_max_ratio"]
        if inlet is not None and outlet is not None and outlet > inlet * ratio:
            warnings.append(
                f"Outlet PPM ({outlet}) exceeds {ratio:.0%} of inlet PPM ({inlet})"
            )

        if errors:
            logger.warning(f"Business rules failed for {reading.inspection_time}: {errors}")

        return errors, warnings


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def validate_business_rules(reading: HourlyReading) -> Tuple[List[str], List[str]]:
    """
    Quick business-rule validation.

    Args:
        reading: Reading to validate

    Returns:
        (errors, warnings)
    """
    validator = RuleValidator()
    return validator.validate(reading)
