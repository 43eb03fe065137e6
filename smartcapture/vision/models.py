from dataclasses import dataclass, field
from enum import Enum

from smartcapture.documents.models import BoundingBox, TextBlock


class PhiType(str, Enum):
    NAME = "name"
    ORGANIZATION = "organization"
    LOCATION = "location"
    DATE = "date"
    PHONE = "phone"
    MEDICAL_RECORD_NUMBER = "medical_record_number"
    NATIONAL_ID = "national_id"
    EMAIL = "email"


@dataclass(frozen=True)
class DetectedPHI:
    """A span of personal information found in recognized text.

    ``start``/``end`` are offsets into the text that was scanned (end exclusive).
    """

    type: PhiType
    value: str
    start: int
    end: int
    confidence: float


@dataclass(frozen=True)
class NamedEntity:
    """Entity span reported by a named-entity recognizer."""

    type: PhiType
    start: int
    end: int


@dataclass
class OnDeviceResult:
    """Output of offline text recognition."""

    text: str
    text_blocks: list[TextBlock] = field(default_factory=list)
    confidence: float = 0.0
    language: str = "en"
    processing_time_ms: int = 0
    is_valid: bool = True

    @classmethod
    def invalid(cls, processing_time_ms: int = 0) -> "OnDeviceResult":
        """Empty result for an image that could not be decoded."""
        return cls(text="", confidence=0.0, processing_time_ms=processing_time_ms, is_valid=False)


@dataclass(frozen=True)
class DetectedBarcode:
    symbology: str
    payload: str
    bounding_box: BoundingBox
    confidence: float
