"""Reference ranges for common lab tests and the range classifier."""

import re
from dataclasses import dataclass

from smartcapture.templates.models import FindingStatus

_RANGE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[-\u2013\u2014]\s*(\d+(?:\.\d+)?)\s*$")

CRITICAL_LOW_FACTOR = 0.7
CRITICAL_HIGH_FACTOR = 1.5


@dataclass(frozen=True)
class LabReference:
    name: str
    normal_range: str
    unit: str
    category: str


LAB_REFERENCES: tuple[LabReference, ...] = (
    LabReference("Hemoglobin", "12.0-16.0", "g/dL", "Hematology"),
    LabReference("WBC", "4.0-11.0", "×10³/µL", "Hematology"),
    LabReference("Platelets", "150-400", "×10³/µL", "Hematology"),
    LabReference("Glucose", "70-100", "mg/dL", "Chemistry"),
    LabReference("Creatinine", "0.6-1.2", "mg/dL", "Chemistry"),
    LabReference("ALT", "7-56", "U/L", "Liver"),
    LabReference("AST", "10-40", "U/L", "Liver"),
)


def parse_range(text: str | None) -> tuple[float, float] | None:
    """Parse ``"70-100"`` (hyphen or dash) into (min, max); None if unparseable."""
    if not text:
        return None
    match = _RANGE_RE.match(text)
    if match is None:
        return None
    low, high = float(match.group(1)), float(match.group(2))
    if low > high:
        return None
    return low, high


def classify_value(value: float, normal_range: str | None) -> FindingStatus:
    """Place a value against its reference range.

    Below 0.7 x min is critical low, above 1.5 x max critical high; values
    outside the range but within those margins are abnormal.
    """
    bounds = parse_range(normal_range)
    if bounds is None:
        return FindingStatus.UNKNOWN
    low, high = bounds
    if value < low:
        return FindingStatus.CRITICAL_LOW if value < low * CRITICAL_LOW_FACTOR else FindingStatus.ABNORMAL_LOW
    if value > high:
        return FindingStatus.CRITICAL_HIGH if value > high * CRITICAL_HIGH_FACTOR else FindingStatus.ABNORMAL_HIGH
    return FindingStatus.NORMAL
