class CameraError(Exception):
    """Base exception for all capture-session errors."""


class HardwareUnavailableError(CameraError):
    """Raised when no camera can be opened or it stops delivering frames."""


class CameraPermissionError(HardwareUnavailableError):
    """Raised when the operating system denies access to the camera."""


class CameraBusyError(HardwareUnavailableError):
    """Raised when another capture session already owns the camera."""


class BatchStateError(CameraError):
    """Raised when a batch operation is used outside of batch mode."""
