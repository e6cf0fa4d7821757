"""File-level statement import shared by the CLI and library callers.

The statement format is picked from the file name, the file is decoded with
that format's encoding and handed to :class:`StatementNormalizer`. Files whose
name matches neither format are skipped with a warning. Importing the rest is
all-or-nothing: the first failing file aborts the import and no partial
collection is returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from os import PathLike
from pathlib import Path

from .collection import TransactionCollection
from .errors import FileReadError, StatementFormatError
from .logging_setup import get_logger
from .models import Transaction
from .normalizers import StatementNormalizer
from .query import SortSpec, sort_transactions

_logger = get_logger("expense_tracker.ingest")

# File-name markers of the two bank exports, checked in this order.
FORMAT_MARKERS: tuple[tuple[str, str], ...] = (
    ("card_transactions", "card"),
    ("account_transactions", "account"),
)

# Card exports come from a Windows tool; account exports are UTF-8, sometimes
# with a BOM.
STATEMENT_ENCODINGS: dict[str, str] = {
    "card": "cp1252",
    "account": "utf-8-sig",
}


def detect_format(filename: str | PathLike[str]) -> str:
    """Return ``"card"`` or ``"account"`` based on the file name.

    Raises :class:`StatementFormatError` for any other name.
    """

    name = Path(filename).name
    for marker, fmt in FORMAT_MARKERS:
        if marker in name:
            return fmt
    raise StatementFormatError(
        "Unrecognized statement file name; expected 'card_transactions' or "
        "'account_transactions' in it",
        filename=name,
    )


def read_statement(path: str | PathLike[str]) -> tuple[str, str]:
    """Read one statement file and return ``(format, decoded text)``."""

    p = Path(path)
    fmt = detect_format(p)
    try:
        with p.open(encoding=STATEMENT_ENCODINGS[fmt], newline="") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise FileReadError(str(p), exc) from exc
    return fmt, text


def _recognized(paths: Iterable[str | PathLike[str]]) -> list[Path]:
    kept: list[Path] = []
    for path in paths:
        p = Path(path)
        try:
            detect_format(p)
        except StatementFormatError:
            _logger.warning("skipping %s: not a card or account statement export", p.name)
            continue
        kept.append(p)
    return kept


def _finish(batches: Iterable[list[Transaction]]) -> TransactionCollection:
    merged = [tx for batch in batches for tx in batch]
    ordered = sort_transactions(merged, SortSpec("date", "descending"))
    _logger.info("imported %d transactions", len(ordered))
    return TransactionCollection.of(ordered)


def import_statements(paths: Iterable[str | PathLike[str]]) -> TransactionCollection:
    """Normalize every recognized file in ``paths`` into one collection, newest first."""

    batches: list[list[Transaction]] = []
    for path in _recognized(paths):
        fmt, text = read_statement(path)
        batches.append(StatementNormalizer.normalize(fmt=fmt, text=text, filename=path.name))
    return _finish(batches)


async def import_statements_async(
    paths: Iterable[str | PathLike[str]],
) -> TransactionCollection:
    """Like :func:`import_statements`, reading files in a worker thread.

    Only the file read suspends; normalization runs on the calling thread once
    the text is available.
    """

    batches: list[list[Transaction]] = []
    for path in _recognized(paths):
        fmt, text = await asyncio.to_thread(read_statement, path)
        batches.append(StatementNormalizer.normalize(fmt=fmt, text=text, filename=path.name))
    return _finish(batches)


__all__ = [
    "FORMAT_MARKERS",
    "STATEMENT_ENCODINGS",
    "detect_format",
    "import_statements",
    "import_statements_async",
    "read_statement",
]
