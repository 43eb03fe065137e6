"""Document outline detection and four-point perspective correction."""

import math

import cv2
import numpy as np

from smartcapture.camera.models import DetectedQuad, Point

_MIN_AREA_RATIO = 0.1
_MAX_CANDIDATES = 5


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def _order_corners(points: np.ndarray) -> tuple[Point, Point, Point, Point]:
    """Order four points as top-left, top-right, bottom-right, bottom-left."""
    pts = points.reshape(4, 2).astype(float)
    sums = pts.sum(axis=1)
    diffs = np.diff(pts, axis=1).ravel()
    top_left = pts[int(np.argmin(sums))]
    bottom_right = pts[int(np.argmax(sums))]
    top_right = pts[int(np.argmin(diffs))]
    bottom_left = pts[int(np.argmax(diffs))]
    return (
        (float(top_left[0]), float(top_left[1])),
        (float(top_right[0]), float(top_right[1])),
        (float(bottom_right[0]), float(bottom_right[1])),
        (float(bottom_left[0]), float(bottom_left[1])),
    )


def output_size(quad: DetectedQuad) -> tuple[int, int]:
    """Return (width, height) of the rectified document.

    Width is the longer of the top and bottom edges, height the longer of
    the left and right edges.
    """
    width = max(
        _distance(quad.top_left, quad.top_right),
        _distance(quad.bottom_left, quad.bottom_right),
    )
    height = max(
        _distance(quad.top_left, quad.bottom_left),
        _distance(quad.top_right, quad.bottom_right),
    )
    return int(round(width)), int(round(height))


def aspect_ratio(quad: DetectedQuad) -> float:
    """Short side over long side of the rectified document, in (0, 1]."""
    width, height = output_size(quad)
    longest = max(width, height)
    if longest == 0:
        return 0.0
    return min(width, height) / longest


def detect_quads(frame: np.ndarray) -> list[DetectedQuad]:
    """Find quadrilateral document outlines in a BGR or grayscale frame.

    Confidence blends how rectangular the outline is with how much of the
    frame it covers. Results are sorted by confidence, best first.
    """
    gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY) if frame.ndim == 3 else frame
    blurred = cv2.GaussianBlur(gray, (5, 5), 0)
    edges = cv2.Canny(blurred, 50, 150)
    edges = cv2.dilate(edges, np.ones((3, 3), np.uint8), iterations=1)
    contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    frame_area = float(gray.shape[0] * gray.shape[1])
    quads: list[DetectedQuad] = []
    for contour in sorted(contours, key=cv2.contourArea, reverse=True)[: _MAX_CANDIDATES * 2]:
        perimeter = cv2.arcLength(contour, True)
        approx = cv2.approxPolyDP(contour, 0.02 * perimeter, True)
        if len(approx) != 4 or not cv2.isContourConvex(approx):
            continue
        area = cv2.contourArea(approx)
        area_ratio = area / frame_area
        if area_ratio < _MIN_AREA_RATIO:
            continue
        (_, _), (rect_w, rect_h), _ = cv2.minAreaRect(approx)
        rect_area = rect_w * rect_h
        rectangularity = area / rect_area if rect_area > 0 else 0.0
        coverage = min(1.0, area_ratio / 0.5)
        confidence = round(min(1.0, 0.6 * rectangularity + 0.4 * coverage), 4)
        tl, tr, br, bl = _order_corners(approx)
        quads.append(DetectedQuad(tl, tr, br, bl, confidence))
        if len(quads) >= _MAX_CANDIDATES:
            break

    quads.sort(key=lambda q: q.confidence, reverse=True)
    return quads


def select_quad(
    quads: list[DetectedQuad],
    min_confidence: float = 0.6,
    min_aspect: float = 0.3,
    max_aspect: float = 1.0,
) -> DetectedQuad | None:
    """Pick the best quad for correction, or None to keep the raw frame.

    The aspect bounds apply to ``aspect_ratio`` (short side over long side,
    so at most 1.0). With the default ``max_aspect`` of 1.0 only the lower
    bound filters; a ``max_aspect`` below 1.0 rejects near-square outlines.
    """
    if not quads:
        return None
    best = max(quads, key=lambda q: q.confidence)
    if best.confidence <= min_confidence:
        return None
    ratio = aspect_ratio(best)
    if ratio < min_aspect or ratio > max_aspect:
        return None
    return best


def correct_perspective(frame: np.ndarray, quad: DetectedQuad) -> np.ndarray:
    """Map the quad's corners onto an axis-aligned rectangle."""
    width, height = output_size(quad)
    source = np.array(quad.corners, dtype=np.float32)
    target = np.array(
        [[0, 0], [width - 1, 0], [width - 1, height - 1], [0, height - 1]],
        dtype=np.float32,
    )
    matrix = cv2.getPerspectiveTransform(source, target)
    return cv2.warpPerspective(frame, matrix, (width, height))
