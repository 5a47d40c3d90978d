# services/exceptions.py
"""Errors raised by the enrollment dropout job."""


class DropoutError(Exception):
    """Base class for dropout job failures."""


class NoDataError(DropoutError):
    """There is no enrollment to derive a deadline from."""


class StorageError(DropoutError):
    """Reading or writing one of the stores failed. The whole run must be rolled back."""
