# wordref/errors.py

from __future__ import annotations

from typing import Optional


class WordRefError(Exception):
    """
    Base class for every error raised by the citation engine.
    """


class ParseFailure(WordRefError, ValueError):
    """
    Malformed bibliographic input. The operation that hit it is aborted
    before any library or document state is touched.
    """


class HostOperationFailure(WordRefError, RuntimeError):
    """
    Error raised when the document host rejects a mutation.

    Callers import this as:
        from wordref.errors import HostOperationFailure
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
