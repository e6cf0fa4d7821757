"""Statement text → canonical :class:`~expense_tracker.models.Transaction` rows.

Two bank export formats are supported, both ``;``-delimited and decoded by the
stdlib :mod:`csv` module:

``card``
    Credit-card statement. The first line is a ``sep=;`` preamble, the second
    the header. Dates are ``DD.MM.YYYY``; the settlement amount sits in
    ``Debit``/``Credit`` with the original amount, currency and exchange rate
    in ``Montant``/``Monnaie originale``/``Cours``.
``account``
    Current-account statement. Header first, ISO dates in
    ``Date de transaction``, comma-decimal amounts with space or apostrophe
    grouping, and up to three description columns.

Rows that are not transactions (no valid date, zero or unparseable amount,
truncated lines) are skipped silently: exports routinely contain them. A
header lacking required columns is a :class:`StatementFormatError` and aborts
the file.
"""

from __future__ import annotations

import csv
import re
import secrets
from collections.abc import Iterator
from datetime import date as _date
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .classifier import classify
from .config import SETTLEMENT_CURRENCY
from .errors import StatementFormatError
from .logging_setup import get_logger
from .models import Transaction

_logger = get_logger("expense_tracker.normalizers")

# Descriptions marking internal movements that would otherwise be counted
# twice (once on the account, once on the card).
INTERNAL_TRANSFER_MARKER = "TRANSFERT D'UN COMPTE"
CARD_PAYMENT_MARKER = "Paiement à une carte"

CARD_REQUIRED_COLUMNS: tuple[str, ...] = ("Date d'achat", "Texte comptable", "Debit", "Credit")
ACCOUNT_REQUIRED_COLUMNS: tuple[str, ...] = (
    "Date de transaction",
    "Debit",
    "Credit",
    "Description1",
)

_ACCOUNT_MIN_FIELDS = 5
_COUNTERPARTY_MAX_LEN = 30
_DESCRIPTION_SEPARATOR = " - "

_GROUPING_RE = re.compile(r"[\s'’]")
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
# Leading name segment, optionally followed by an address starting with a
# number ("Jane Doe, 12 Rue ..."). No match means the layout is unknown.
_COUNTERPARTY_RE = re.compile(r"([^,\d]+)(?:[,\s]+\d+.*)?")


# ---------------------------------------------------------------------------
# Helpers (amounts, dates, names, CSV loading)
# ---------------------------------------------------------------------------


def parse_amount(raw: str | None) -> Decimal | None:
    """Parse a European-formatted amount such as ``"1 234,50"`` or ``"2'500.00"``.

    Whitespace and apostrophe grouping characters are removed and the decimal
    comma becomes a point. Returns ``None`` when nothing parseable remains.
    """

    if raw is None:
        return None
    s = _GROUPING_RE.sub("", raw)
    if not s:
        return None
    s = s.replace(",", ".", 1)
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def _cents(d: Decimal) -> Decimal:
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _dmy_to_iso(raw: str | None) -> str | None:
    if raw is None:
        return None
    s = raw.strip()
    if not s:
        return None
    try:
        return datetime.strptime(s, "%d.%m.%Y").date().isoformat()
    except ValueError:
        return None


def _iso_date(raw: str | None) -> str | None:
    if raw is None:
        return None
    s = raw.strip()
    if not _ISO_DATE_RE.fullmatch(s):
        return None
    try:
        _date.fromisoformat(s)
    except ValueError:
        return None
    return s


def extract_counterparty(raw: str | None) -> str | None:
    """Best-effort counterparty name from an account description field.

    Takes the leading segment made of anything but commas and digits when the
    rest of the field looks like an address; otherwise the first 30
    characters.
    """

    if not raw:
        return None
    s = raw.strip().removeprefix('"').removesuffix('"').strip()
    if not s:
        return None
    m = _COUNTERPARTY_RE.fullmatch(s)
    if m:
        return m.group(1).strip()
    return s[:_COUNTERPARTY_MAX_LEN]


def _clean_header(name: str) -> str:
    return name.strip().lstrip("\ufeff").strip().strip('"')


def _read_rows(
    lines: list[str], *, fmt: str, filename: str | None
) -> tuple[list[str], list[list[str]]]:
    # Pre-split lines so CR-only exports parse like LF and CRLF ones.
    reader = csv.reader(lines, delimiter=";")
    try:
        header = next(reader, [])
        records = list(reader)
    except csv.Error as exc:
        raise StatementFormatError(
            f"{fmt} statement is not valid delimited text (line {reader.line_num}): {exc}",
            filename=filename,
        ) from exc
    return [_clean_header(h) for h in header], records


def _check_columns(
    header: list[str], required: tuple[str, ...], *, fmt: str, filename: str | None
) -> None:
    if not any(header):
        raise StatementFormatError(f"{fmt} statement has no header row", filename=filename)
    missing = [c for c in required if c not in header]
    if missing:
        raise StatementFormatError(
            f"{fmt} statement header mismatch", filename=filename, missing=missing
        )


def _new_id(source: str) -> str:
    return f"{source}-{secrets.token_hex(8)}"


# ---------------------------------------------------------------------------
# Format-specific normalizers
# ---------------------------------------------------------------------------


class StatementNormalizer:
    """Normalize decoded statement text into canonical transactions.

    Usage
    -----
    rows = StatementNormalizer.normalize(fmt="card", text=...)  # -> list[Transaction]
    """

    FORMATS: tuple[str, ...] = ("card", "account")

    @staticmethod
    def normalize(*, fmt: str, text: str, filename: str | None = None) -> list[Transaction]:
        f = fmt.strip().lower()
        if f == "card":
            rows = list(_normalize_card(text, filename))
        elif f == "account":
            rows = list(_normalize_account(text, filename))
        else:
            raise StatementFormatError(f"unknown statement format: {fmt!r}", filename=filename)
        _logger.info("normalized %d %s transactions from %s", len(rows), f, filename or "<text>")
        return rows


def _normalize_card(text: str, filename: str | None) -> Iterator[Transaction]:
    lines = text.splitlines()
    if len(lines) < 2:
        raise StatementFormatError("card statement has no header row", filename=filename)
    # Line 0 is the "sep=;" preamble.
    body = [lines[1], *(ln for ln in lines[2:] if ln.strip())]
    header, records = _read_rows(body, fmt="card", filename=filename)
    _check_columns(header, CARD_REQUIRED_COLUMNS, fmt="card", filename=filename)

    for line_no, fields in enumerate(records, start=3):
        r = dict(zip(header, fields, strict=False))

        tx_date = _dmy_to_iso(r.get("Date d'achat"))
        if tx_date is None:
            _logger.debug("card line %d skipped: no valid purchase date", line_no)
            continue

        original_amount = parse_amount(r.get("Montant")) or Decimal(0)
        rate = parse_amount(r.get("Cours")) or Decimal(0)
        currency = (r.get("Monnaie originale") or "").strip() or SETTLEMENT_CURRENCY

        debit = (r.get("Debit") or "").strip()
        credit = (r.get("Credit") or "").strip()
        if debit:
            tx_type = "expense"
            amount = parse_amount(debit)
        elif credit:
            tx_type = "income"
            amount = parse_amount(credit)
        else:
            # No settlement column: convert the original amount ourselves.
            tx_type = "expense"
            amount = _cents(original_amount * rate)
        if amount is None or amount == 0:
            _logger.debug("card line %d skipped: zero or unparseable amount", line_no)
            continue
        amount = abs(amount)

        description = (r.get("Texte comptable") or "").strip()
        hidden = description == INTERNAL_TRANSFER_MARKER or CARD_PAYMENT_MARKER in description

        yield Transaction(
            id=_new_id("card"),
            date=tx_date,
            description=description,
            amount=float(amount),
            value=float(-amount if tx_type == "expense" else amount),
            type=tx_type,
            category=classify(description, sector=r.get("Secteur")),
            source="card",
            hidden=hidden,
            original_amount=float(original_amount),
            original_currency=currency,
        )


def _normalize_account(text: str, filename: str | None) -> Iterator[Transaction]:
    header, records = _read_rows(text.splitlines(), fmt="account", filename=filename)
    _check_columns(header, ACCOUNT_REQUIRED_COLUMNS, fmt="account", filename=filename)

    for line_no, fields in enumerate(records, start=2):
        if len(fields) < _ACCOUNT_MIN_FIELDS:
            continue
        r = dict(zip(header, fields, strict=False))

        tx_date = _iso_date(r.get("Date de transaction"))
        if tx_date is None:
            _logger.debug("account line %d skipped: no valid transaction date", line_no)
            continue

        debit = (r.get("Debit") or "").strip()
        credit = (r.get("Credit") or "").strip()
        if debit:
            tx_type = "expense"
            amount = parse_amount(debit)
        elif credit:
            tx_type = "income"
            amount = parse_amount(credit)
        else:
            amount = None
        if amount is None or amount == 0:
            _logger.debug("account line %d skipped: zero or unparseable amount", line_no)
            continue
        amount = abs(amount)

        parts = [(r.get(k) or "").strip() for k in ("Description1", "Description2", "Description3")]
        description = _DESCRIPTION_SEPARATOR.join(p for p in parts if p)
        counterparty = extract_counterparty(r.get("Description1"))

        yield Transaction(
            id=_new_id("account"),
            date=tx_date,
            description=description,
            amount=float(amount),
            value=float(-amount if tx_type == "expense" else amount),
            type=tx_type,
            category=classify(description),
            source="account",
            hidden=description == INTERNAL_TRANSFER_MARKER,
            recipient=counterparty if tx_type == "expense" else None,
            sender=counterparty if tx_type == "income" else None,
        )


__all__ = [
    "ACCOUNT_REQUIRED_COLUMNS",
    "CARD_PAYMENT_MARKER",
    "CARD_REQUIRED_COLUMNS",
    "INTERNAL_TRANSFER_MARKER",
    "StatementNormalizer",
    "extract_counterparty",
    "parse_amount",
]
