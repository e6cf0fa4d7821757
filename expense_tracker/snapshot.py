"""Whole-collection snapshot export and import (JSON).

A snapshot is a JSON array holding every field of every transaction verbatim,
including ``hidden`` flags and manually edited categories. Loading accepts any
array of objects: a known field with an unusable value falls back to its
default and is written back unchanged on the next export.

File writes go to a ``.tmp`` sibling first and are moved into place with
``os.replace`` so an interrupted save never leaves a truncated snapshot.
"""

from __future__ import annotations

import contextlib
import json
import os
from collections.abc import Iterable
from datetime import datetime
from os import PathLike
from pathlib import Path

from .collection import TransactionCollection
from .errors import FileReadError, SnapshotValidationError
from .logging_setup import get_logger
from .models import Transaction

_logger = get_logger("expense_tracker.snapshot")

SNAPSHOT_PREFIX = "expense_tracker_data_"


def export_snapshot(transactions: Iterable[Transaction]) -> str:
    """Serialize ``transactions`` as a pretty-printed JSON array."""

    records = [tx.to_record() for tx in transactions]
    return json.dumps(records, indent=2, ensure_ascii=False)


def load_snapshot(text: str) -> TransactionCollection:
    """Parse a snapshot produced by :func:`export_snapshot`.

    Raises :class:`SnapshotValidationError` when the text is not JSON, not an
    array, or holds a non-object element.
    """

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotValidationError(f"Error parsing snapshot: {exc}") from exc

    if not isinstance(payload, list):
        raise SnapshotValidationError("Invalid data format: expected an array of transactions")

    restored: list[Transaction] = []
    for i, record in enumerate(payload):
        if not isinstance(record, dict):
            raise SnapshotValidationError(
                "Invalid transaction data: expected an object", index=i
            )
        restored.append(Transaction.model_validate(record))

    _logger.info("loaded %d transactions from snapshot", len(restored))
    return TransactionCollection.of(restored)


def snapshot_filename(now: datetime | None = None) -> str:
    """Default file name, e.g. ``expense_tracker_data_2024-03-05_14-02-09.json``."""

    now = now or datetime.now()
    return f"{SNAPSHOT_PREFIX}{now:%Y-%m-%d_%H-%M-%S}.json"


def save_snapshot(transactions: Iterable[Transaction], path: str | PathLike[str]) -> Path:
    p = Path(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    try:
        tmp.write_text(export_snapshot(transactions), encoding="utf-8")
        os.replace(tmp, p)
    except Exception:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
        raise
    _logger.info("saved snapshot to %s", p)
    return p


def read_snapshot(path: str | PathLike[str]) -> TransactionCollection:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FileReadError(str(p), exc) from exc
    return load_snapshot(text)


__all__ = [
    "SNAPSHOT_PREFIX",
    "export_snapshot",
    "load_snapshot",
    "read_snapshot",
    "save_snapshot",
    "snapshot_filename",
]
