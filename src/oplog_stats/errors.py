"""Exception hierarchy for oplog scanning."""

from __future__ import annotations


class OplogStatsError(Exception):
    """Base class for every error raised by *oplog-stats*."""


class SourceError(OplogStatsError):
    """A record source could not deliver the next record.

    Raised for lost connections, authentication failures and unreadable
    dump files.  Always fatal for the scan in progress.
    """


class ScanError(OplogStatsError):
    """A scan was aborted before the source was exhausted.

    ``processed`` is the number of records consumed before the failure.
    No partial report accompanies this error.
    """

    def __init__(self, message: str, *, processed: int = 0) -> None:
        super().__init__(message)
        self.processed = processed


def iter_causes(exc: BaseException) -> list[BaseException]:
    """Return the chain of exceptions that led to ``exc`` (excluding itself)."""
    causes: list[BaseException] = []
    current = exc.__cause__ or exc.__context__
    while current is not None and current not in causes:
        causes.append(current)
        current = current.__cause__ or current.__context__
    return causes
