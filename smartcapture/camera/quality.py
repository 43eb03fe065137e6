import cv2
import numpy as np

from smartcapture.camera.models import CaptureQuality, QualityAssessment


def blur_score(gray: np.ndarray) -> float:
    """Variance of the Laplacian; higher means sharper."""
    return float(cv2.Laplacian(gray, cv2.CV_64F).var())


def brightness(gray: np.ndarray) -> float:
    """Mean luminance in [0, 1]."""
    return float(gray.mean() / 255.0) if gray.size else 0.0


def assess_quality(image: np.ndarray) -> QualityAssessment:
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if image.ndim == 3 else image
    sharpness = blur_score(gray)
    luminance = brightness(gray)

    if sharpness > 100 and 0.3 < luminance < 0.8:
        level = CaptureQuality.EXCELLENT
    elif sharpness > 50 and 0.2 < luminance < 0.9:
        level = CaptureQuality.GOOD
    elif sharpness > 20:
        level = CaptureQuality.ACCEPTABLE
    else:
        level = CaptureQuality.POOR

    return QualityAssessment(level=level, blur_score=sharpness, brightness=luminance)
