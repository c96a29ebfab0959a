class TimelineError(Exception):
    """Base exception for all timelinegen errors."""
    pass

class RecoverableError(TimelineError):
    """An error that leaves the in-memory document untouched."""
    pass

class FatalError(TimelineError):
    """An error that requires application termination or major intervention."""
    pass

class CorruptionError(FatalError):
    """Corrupted data - from syntax errors in data formats, to just unknown data"""
    pass

class FileOperationError(RecoverableError):
    """File operation failed but can be retried."""
    pass

class ImportFormatError(RecoverableError):
    """Import text could not be parsed at all; the user should re-export and retry."""
    pass
