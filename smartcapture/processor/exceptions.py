class ProcessorError(Exception):
    """Base exception for capture orchestration errors."""


class EmptyBatchError(ProcessorError):
    """Raised when a multi-page capture is processed without any page."""
