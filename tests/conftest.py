import cv2
import numpy as np
import pytest


def _encode(image: np.ndarray, ext: str = ".png") -> bytes:
    ok, buffer = cv2.imencode(ext, image)
    assert ok
    return buffer.tobytes()


@pytest.fixture()
def document_frame() -> np.ndarray:
    """A 640x480 dark frame with a bright 400x320 page at (120, 80)."""
    frame = np.full((480, 640, 3), 20, dtype=np.uint8)
    cv2.rectangle(frame, (120, 80), (519, 399), (235, 235, 235), thickness=-1)
    return frame


@pytest.fixture()
def sharp_image() -> np.ndarray:
    """Checkerboard of 8px squares: very sharp, mid brightness."""
    rows, cols = np.indices((240, 320))
    tiles = (rows // 8 + cols // 8) % 2
    gray = (tiles * 255).astype(np.uint8)
    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)


@pytest.fixture()
def flat_image() -> np.ndarray:
    """Uniform gray: no detail at all."""
    return np.full((240, 320, 3), 128, dtype=np.uint8)


@pytest.fixture()
def png_bytes(document_frame: np.ndarray) -> bytes:
    return _encode(document_frame)


@pytest.fixture()
def small_png_bytes() -> bytes:
    """A 200x100 white image."""
    return _encode(np.full((100, 200, 3), 255, dtype=np.uint8))
