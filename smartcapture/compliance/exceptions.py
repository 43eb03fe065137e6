class AuditError(Exception):
    """Raised when the compliance audit sink rejects or cannot record an event."""
