from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

import numpy as np


class CaptureQuality(str, Enum):
    POOR = "poor"
    ACCEPTABLE = "acceptable"
    GOOD = "good"
    EXCELLENT = "excellent"

    @property
    def rank(self) -> int:
        return _QUALITY_RANK[self]

    @property
    def retake_recommended(self) -> bool:
        return self is CaptureQuality.POOR


_QUALITY_RANK = {
    CaptureQuality.POOR: 0,
    CaptureQuality.ACCEPTABLE: 1,
    CaptureQuality.GOOD: 2,
    CaptureQuality.EXCELLENT: 3,
}


Point = tuple[float, float]


@dataclass(frozen=True)
class DetectedQuad:
    """A candidate document outline in pixel coordinates.

    Corners are ordered top-left, top-right, bottom-right, bottom-left.
    """

    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point
    confidence: float

    @property
    def corners(self) -> list[Point]:
        return [self.top_left, self.top_right, self.bottom_right, self.bottom_left]


@dataclass(frozen=True)
class QualityAssessment:
    level: CaptureQuality
    blur_score: float
    brightness: float

    @property
    def score(self) -> float:
        """Level mapped onto [0, 1] for capture metadata."""
        return self.level.rank / 3

    @property
    def retake_recommended(self) -> bool:
        return self.level.retake_recommended


@dataclass
class CapturedPage:
    """One committed frame, after optional perspective correction."""

    image: np.ndarray
    original: np.ndarray
    page_number: int
    quality: QualityAssessment
    perspective_corrected: bool
    quad: DetectedQuad | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
