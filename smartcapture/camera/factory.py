from smartcapture.camera.base import BaseCameraDevice
from smartcapture.camera.opencv_adapter import OpenCvCameraDevice
from smartcapture.camera.session import CaptureSession
from smartcapture.config.settings import Settings


class CameraFactory:
    """Creates camera devices and capture sessions from settings."""

    @classmethod
    def create_device(cls, settings: Settings) -> BaseCameraDevice:
        return OpenCvCameraDevice(index=settings.camera_index)

    @classmethod
    def create_session(
        cls,
        settings: Settings,
        device: BaseCameraDevice | None = None,
    ) -> CaptureSession:
        return CaptureSession(
            device or cls.create_device(settings),
            min_quad_confidence=settings.quad_min_confidence,
            min_aspect_ratio=settings.quad_min_aspect_ratio,
            max_aspect_ratio=settings.quad_max_aspect_ratio,
        )
