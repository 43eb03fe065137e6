class OfflineQueueError(Exception):
    """Base exception for offline job queue errors."""


class JobNotFoundError(OfflineQueueError):
    """Raised when a job id is not in the queue."""
