# ============================================================================
# src/thermal_log_ocr/constants/field_patterns.py
# ============================================================================
"""
Standard Field Definitions
- The eight fields of an hourly thermal oxidizer log
- Value pattern, type, unit, expected range and aliases per field

Patterns capture the value in group 1. Lookarounds keep a pattern from
matching inside a longer number ("1450" never yields "145"); only the
pressure pattern accepts a sign, so "-5.0" is never read as "5.0".
"""

FLOW_PATTERN = r"(?<![\d.\-])(\d{1,5})(?![\d.])"
TEMPERATURE_PATTERN = r"(?<![\d.\-])(\d{3,4})(?![\d.])"
PRESSURE_PATTERN = r"(?<![\d.])(-?\d{1,3}(?:\.\d+)?)(?![\d.])"
CONCENTRATION_PATTERN = r"(?<![\d.\-])(\d{1,6}(?:\.\d+)?)(?![\d.])"
TOTALIZER_PATTERN = r"(?<![\d.\-])(\d{4,10})(?![\d.])"

STANDARD_FIELD_DEFINITIONS = {
    "vaporInletFpm": {
        "label": "Vapor Inlet Flow",
        "pattern": FLOW_PATTERN,
        "type": "flowRate",
        "unit": "FPM",
        "range": (0, 10000),
        "aliases": ["vapor inlet", "vapor in", "inlet fpm", "vapor flow", "flow"],
    },
    "dilutionAirFpm": {
        "label": "Dilution Air Flow",
        "pattern": FLOW_PATTERN,
        "type": "flowRate",
        "unit": "FPM",
        "range": (0, 5000),
        "aliases": ["dilution air", "dilution", "dil air"],
    },
    "combustionAirFpm": {
        "label": "Combustion Air Flow",
        "pattern": FLOW_PATTERN,
        "type": "flowRate",
        "unit": "FPM",
        "range": (0, 5000),
        "aliases": ["combustion air", "comb air", "combustion"],
    },
    "exhaustTempF": {
        "label": "Exhaust Temperature",
        "pattern": TEMPERATURE_PATTERN,
        "type": "temperature",
        "unit": "°F",
        "range": (500, 2000),
        "aliases": ["exhaust temp", "temperature", "temp"],
    },
    "spherePressurePsi": {
        "label": "Sphere Pressure",
        "pattern": PRESSURE_PATTERN,
        "type": "pressure",
        "unit": "PSI",
        "range": (0, 50),
        "aliases": ["sphere pressure", "pressure", "psi"],
    },
    "inletPpm": {
        "label": "Inlet PPM",
        "pattern": CONCENTRATION_PATTERN,
        "type": "concentration",
        "unit": "PPM",
        "range": (0, 100000),
        "aliases": ["inlet ppm", "in ppm", "inlet"],
    },
    "outletPpm": {
        "label": "Outlet PPM",
        "pattern": CONCENTRATION_PATTERN,
        "type": "concentration",
        "unit": "PPM",
        "range": (0, 1000),
        "aliases": ["outlet ppm", "out ppm", "outlet"],
    },
    "totalizerScf": {
        "label": "Totalizer",
        "pattern": TOTALIZER_PATTERN,
        "type": "totalizer",
        "unit": "SCF",
        "range": (1000, 999999999),
        "aliases": ["totalizer", "total", "scf"],
        # Cumulative counter, a steady climb is expected
        "expects_variation": False,
    },
}

# Hour labels printed on the standard sheet
STANDARD_HOUR_LABELS = [f"{hour:02d}:00" for hour in range(0, 11)]
