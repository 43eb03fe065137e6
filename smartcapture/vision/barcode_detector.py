import cv2
import numpy as np

from smartcapture.documents.models import BoundingBox
from smartcapture.logging.logger import Log
from smartcapture.vision.models import DetectedBarcode


def _bounding_box(points: np.ndarray, width: int, height: int) -> BoundingBox:
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    x_min, y_min = pts.min(axis=0)
    x_max, y_max = pts.max(axis=0)
    return BoundingBox(
        x=max(x_min, 0.0) / width,
        y=max(y_min, 0.0) / height,
        width=(x_max - x_min) / width,
        height=(y_max - y_min) / height,
    )


def detect_barcodes(image: np.ndarray) -> list[DetectedBarcode]:
    """Decode QR codes and, where OpenCV ships it, 1-D barcodes.

    OpenCV does not report a decoder score, so decoded payloads carry
    confidence 1.0.
    """
    height, width = image.shape[:2]
    results: list[DetectedBarcode] = []

    try:
        ok, payloads, points, _ = cv2.QRCodeDetector().detectAndDecodeMulti(image)
    except cv2.error as exc:
        Log.warning("QR detection failed", error=str(exc))
        ok, payloads, points = False, (), None
    if ok and points is not None:
        for payload, corners in zip(payloads, points):
            if payload:
                results.append(
                    DetectedBarcode("QR", payload, _bounding_box(corners, width, height), 1.0)
                )

    if hasattr(cv2, "barcode"):
        try:
            ok, payloads, types, points = cv2.barcode.BarcodeDetector().detectAndDecodeWithType(image)
        except cv2.error as exc:
            Log.warning("Barcode detection failed", error=str(exc))
            ok = False
        if ok and points is not None:
            for payload, symbology, corners in zip(payloads, types, points):
                if payload:
                    results.append(
                        DetectedBarcode(
                            symbology, payload, _bounding_box(corners, width, height), 1.0
                        )
                    )

    return results
