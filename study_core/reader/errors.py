# study_core/reader/errors.py
"""Exceptions raised by the reader text engine."""


class ReaderError(Exception):
    """Base class for reader engine errors."""

    pass


class InvalidConfigError(ReaderError, ValueError):
    """Raised when reader configuration is missing, unknown or out of range."""

    pass


class PersistenceError(ReaderError):
    """Raised by annotation stores when a create/update/delete is rejected."""

    pass
