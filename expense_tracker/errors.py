"""Exception taxonomy for statement import and snapshot loading.

Every error raised by the library derives from :class:`ExpenseTrackerError`
so entrypoints can report failures uniformly. Row-level anomalies (a missing
date, a zero amount, a short line) are not errors: normalizers skip those rows.
"""

from __future__ import annotations

from collections.abc import Iterable


class ExpenseTrackerError(Exception):
    """Base class for all library errors."""


class StatementFormatError(ExpenseTrackerError, ValueError):
    """A statement file cannot be interpreted as one of the known formats.

    Raised for an unrecognized file name or a header lacking required columns.
    Aborts the whole import; the existing collection is left untouched.
    """

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        missing: Iterable[str] = (),
    ) -> None:
        self.filename = filename
        self.missing = tuple(missing)
        details = []
        if self.missing:
            details.append("missing columns: " + ", ".join(self.missing))
        if filename:
            details.append(f"file: {filename}")
        full = f"{message} ({'; '.join(details)})" if details else message
        super().__init__(full)


class SnapshotValidationError(ExpenseTrackerError, ValueError):
    """A snapshot payload is not an array of transaction objects."""

    def __init__(self, message: str, *, index: int | None = None) -> None:
        self.index = index
        super().__init__(message if index is None else f"{message} (record {index})")


class FileReadError(ExpenseTrackerError, OSError):
    """The underlying read or decode of an input file failed."""

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Error reading file {path}: {cause}")


__all__ = [
    "ExpenseTrackerError",
    "SnapshotValidationError",
    "StatementFormatError",
    "FileReadError",
]
