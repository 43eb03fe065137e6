class VisionError(Exception):
    """Base exception for on-device recognition errors."""


class InvalidInputError(VisionError):
    """Raised when an image cannot be decoded or carries no payload."""
