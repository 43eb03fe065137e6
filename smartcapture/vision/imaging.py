import cv2
import numpy as np


def decode_image(data: bytes) -> np.ndarray | None:
    """Decode encoded image bytes to a BGR array, or None if undecodable."""
    if not data:
        return None
    buffer = np.frombuffer(data, dtype=np.uint8)
    try:
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    except cv2.error:
        return None
    if image is None or image.size == 0:
        return None
    return image
