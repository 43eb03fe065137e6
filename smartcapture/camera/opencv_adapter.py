import cv2
import numpy as np

from smartcapture.camera.base import BaseCameraDevice
from smartcapture.camera.exceptions import CameraPermissionError, HardwareUnavailableError
from smartcapture.logging.logger import Log


class OpenCvCameraDevice(BaseCameraDevice):
    """Camera adapter backed by ``cv2.VideoCapture``."""

    def __init__(self, index: int = 0) -> None:
        self._index = index
        self._capture: cv2.VideoCapture | None = None

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    def open(self) -> None:
        try:
            capture = cv2.VideoCapture(self._index)
        except cv2.error as exc:
            if "permission" in str(exc).lower():
                raise CameraPermissionError(f"Camera {self._index} access denied") from exc
            raise HardwareUnavailableError(f"Camera {self._index} failed to open: {exc}") from exc
        if not capture.isOpened():
            capture.release()
            raise HardwareUnavailableError(f"No camera available at index {self._index}")
        self._capture = capture
        Log.info("Camera opened", index=self._index)

    def read_frame(self) -> np.ndarray:
        if self._capture is None:
            raise HardwareUnavailableError("Camera is not open")
        ok, frame = self._capture.read()
        if not ok or frame is None:
            raise HardwareUnavailableError(f"Camera {self._index} returned no frame")
        return frame

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            Log.info("Camera released", index=self._index)
