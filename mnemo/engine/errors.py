"""Exception types for Mnemo."""

from typing import Optional


class MnemoError(Exception):
    """Base class for Mnemo errors."""


class StorageError(MnemoError):
    """Raised when the key-value store cannot be read or written."""


class GenerationError(MnemoError):
    """Human-readable failure from the card generation service.

    ``kind`` is one of: quota, unavailable, format, missing_key, network, other.
    """

    def __init__(self, message: str, kind: str = "other", status: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status = status
