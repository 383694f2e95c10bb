"""
Exception hierarchy for the duplicate resolver.

Per-file problems during scanning are raised by the low-level helpers and
caught by the detectors, which log and skip the file. Restoration errors are
raised to the caller unchanged.
"""

from pathlib import Path


class DuplicateResolverError(Exception):
    """Base exception for all duplicate resolver errors."""
    pass


class FileUnavailableError(DuplicateResolverError):
    """Raised when a file disappears before it can be hashed."""

    def __init__(self, path: Path):
        super().__init__(f"File is no longer available: {path}")
        self.path = path


class HashComputeError(DuplicateResolverError):
    """Raised when reading a file's bytes for hashing fails."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Could not hash {path}: {reason}")
        self.path = path
        self.reason = reason


class FingerprintMismatchError(DuplicateResolverError, ValueError):
    """Raised when two fingerprints cannot be compared."""
    pass


class ScanAlreadyInProgressError(DuplicateResolverError):
    """Raised when a scan is requested while another is still running."""

    def __init__(self) -> None:
        super().__init__("A duplicate scan is already in progress")


class ScanCancelledError(DuplicateResolverError):
    """Raised when a scan stops because cancellation was requested."""

    def __init__(self) -> None:
        super().__init__("Duplicate scan was cancelled")


class RestorationError(DuplicateResolverError):
    """Base class for failures while restoring a safely deleted file."""
    pass


class RestorationOriginalMissingError(RestorationError):
    """Raised when the kept copy no longer exists."""

    def __init__(self, path: Path):
        super().__init__(
            f"The kept copy could not be found at {path}. It may have been moved or deleted."
        )
        self.path = path


class RestorationTargetOccupiedError(RestorationError):
    """Raised when something already exists where the file would be restored."""

    def __init__(self, path: Path):
        super().__init__(f"A file already exists at the restoration location: {path}")
        self.path = path


class RestorableRecordNotFoundError(RestorationError):
    """Raised when a record is not (or no longer) pending restoration."""

    def __init__(self, record_id: str):
        super().__init__(f"No pending restorable record with id {record_id}")
        self.record_id = record_id
