class DocumentError(Exception):
    """Base exception for captured document state errors."""


class InvalidStageTransitionError(DocumentError):
    """Raised when a processing stage would move backwards or leave a terminal stage."""
