class PersistenceError(Exception):
    """Raised when a record cannot be saved, loaded or deleted."""
