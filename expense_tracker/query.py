"""Filtering, sorting and pagination over a transaction collection.

All filter/sort/pagination parameters travel in explicit records
(:class:`QueryCriteria`, :class:`SortSpec`) rather than ambient state. The
``exclude_hidden`` criterion belongs to the table view; chart views pass their
own hidden toggle through :func:`expense_tracker.aggregation.chart_view`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import StrEnum
from typing import Any, Literal

from .config import DEFAULT_PAGE_SIZE
from .models import TRANSACTION_TYPES, Transaction

SortKey = Literal[
    "date", "amount", "value", "category", "subcategory", "description", "type", "source"
]
SortDirection = Literal["ascending", "descending"]

SORT_KEYS: tuple[str, ...] = (
    "date",
    "amount",
    "value",
    "category",
    "subcategory",
    "description",
    "type",
    "source",
)
SORT_DIRECTIONS: tuple[str, ...] = ("ascending", "descending")

# Missing or invalid dates sort as this day.
_EPOCH = date(1970, 1, 1)


# ---------------------------------------------------------------------------
# Criteria
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class QueryCriteria:
    """Conjunctive filter over transactions.

    Attributes
    ----------
    start_date / end_date:
        Inclusive ``YYYY-MM-DD`` bounds, compared as strings; each applies only
        when set.
    types:
        Allowed transaction types. An empty set matches nothing.
    category / subcategory:
        Exact match on ``category.name`` / ``category.sub``.
    search:
        Case-insensitive substring of ``description``.
    min_amount / max_amount:
        Inclusive bounds on ``amount``.
    exclude_hidden:
        Drop transactions whose ``hidden`` flag is set.
    """

    start_date: str | None = None
    end_date: str | None = None
    types: frozenset[str] = field(default_factory=lambda: frozenset(TRANSACTION_TYPES))
    category: str | None = None
    subcategory: str | None = None
    search: str | None = None
    min_amount: float | None = None
    max_amount: float | None = None
    exclude_hidden: bool = False

    def matches(self, tx: Transaction) -> bool:
        if not tx.date:
            return False
        if self.exclude_hidden and tx.hidden:
            return False
        if self.start_date and tx.date < self.start_date:
            return False
        if self.end_date and tx.date > self.end_date:
            return False
        if tx.type not in self.types:
            return False
        cat = tx.category
        if self.category and (cat is None or cat.name != self.category):
            return False
        if self.subcategory and (cat is None or cat.sub != self.subcategory):
            return False
        if self.search and self.search.casefold() not in tx.description.casefold():
            return False
        if self.min_amount is not None and tx.amount < self.min_amount:
            return False
        if self.max_amount is not None and tx.amount > self.max_amount:
            return False
        return True


@dataclass(frozen=True, slots=True)
class SortSpec:
    key: SortKey = "date"
    direction: SortDirection = "descending"

    def __post_init__(self) -> None:
        if self.key not in SORT_KEYS:
            raise ValueError(f"unknown sort key: {self.key!r} (expected one of {SORT_KEYS})")
        if self.direction not in SORT_DIRECTIONS:
            raise ValueError(f"unknown sort direction: {self.direction!r}")


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


def _date_key(tx: Transaction) -> int:
    try:
        return date.fromisoformat(tx.date).toordinal()
    except (TypeError, ValueError):
        return _EPOCH.toordinal()


def _numeric_key(attr: str) -> Callable[[Transaction], float]:
    def _key(tx: Transaction) -> float:
        try:
            return float(getattr(tx, attr))
        except (TypeError, ValueError):
            return 0.0

    return _key


def _text_key(get: Callable[[Transaction], Any]) -> Callable[[Transaction], tuple[str, str]]:
    def _key(tx: Transaction) -> tuple[str, str]:
        s = str(get(tx) or "")
        return s.casefold(), s

    return _key


_SORT_KEY_FUNCS: dict[str, Callable[[Transaction], Any]] = {
    "date": _date_key,
    "amount": _numeric_key("amount"),
    "value": _numeric_key("value"),
    "category": _text_key(lambda tx: tx.category.name if tx.category else ""),
    "subcategory": _text_key(lambda tx: tx.category.sub if tx.category else ""),
    "description": _text_key(lambda tx: tx.description),
    "type": _text_key(lambda tx: tx.type),
    "source": _text_key(lambda tx: tx.source),
}


def sort_transactions(transactions: Iterable[Transaction], spec: SortSpec) -> list[Transaction]:
    """Return a stably sorted copy; equal keys keep their input order."""

    return sorted(
        transactions,
        key=_SORT_KEY_FUNCS[spec.key],
        reverse=spec.direction == "descending",
    )


def filter_transactions(
    transactions: Iterable[Transaction],
    criteria: QueryCriteria | None = None,
    sort: SortSpec | None = None,
) -> list[Transaction]:
    """Apply ``criteria`` then ``sort`` (default: date, newest first)."""

    criteria = criteria or QueryCriteria()
    view = [tx for tx in transactions if criteria.matches(tx)]
    return sort_transactions(view, sort or SortSpec())


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


def paginate(view: Sequence[Transaction], count: int = DEFAULT_PAGE_SIZE) -> list[Transaction]:
    return list(view[: max(count, 0)])


def show_more(count: int, total: int, increment: int = DEFAULT_PAGE_SIZE) -> int:
    """Next display count after a "show more" request, capped at ``total``."""

    return min(count + increment, total)


# ---------------------------------------------------------------------------
# Time presets
# ---------------------------------------------------------------------------


class TimePreset(StrEnum):
    ALL = "all"
    CURRENT_YEAR = "currentYear"
    LAST_MONTH = "lastMonth"
    LAST_3_MONTHS = "last3Months"
    LAST_6_MONTHS = "last6Months"
    LAST_12_MONTHS = "last12Months"
    LAST_2_YEARS = "last2Years"


def _month_start(today: date, months_back: int) -> date:
    idx = today.year * 12 + (today.month - 1) - months_back
    return date(idx // 12, idx % 12 + 1, 1)


def _years_back(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # 29 February in a non-leap target year.
        return today.replace(year=today.year - years, day=28)


def preset_date_range(
    preset: TimePreset | str,
    transactions: Iterable[Transaction],
    today: date | None = None,
) -> tuple[str | None, str | None]:
    """Inclusive ``(start, end)`` dates for a time preset.

    ``all`` spans the dates present in ``transactions`` (``(None, None)`` when
    there are none); ``lastMonth`` covers the whole previous calendar month;
    every other preset ends today.
    """

    p = TimePreset(preset)
    today = today or date.today()

    if p is TimePreset.ALL:
        dates = sorted(tx.date for tx in transactions if tx.date)
        return (dates[0], dates[-1]) if dates else (None, None)
    if p is TimePreset.LAST_MONTH:
        start = _month_start(today, 1)
        end = _month_start(today, 0) - timedelta(days=1)
        return start.isoformat(), end.isoformat()

    if p is TimePreset.CURRENT_YEAR:
        start = date(today.year, 1, 1)
    elif p is TimePreset.LAST_3_MONTHS:
        start = _month_start(today, 3)
    elif p is TimePreset.LAST_6_MONTHS:
        start = _month_start(today, 6)
    elif p is TimePreset.LAST_12_MONTHS:
        start = _years_back(today, 1)
    else:
        start = _years_back(today, 2)
    return start.isoformat(), today.isoformat()


__all__ = [
    "SORT_DIRECTIONS",
    "SORT_KEYS",
    "QueryCriteria",
    "SortDirection",
    "SortKey",
    "SortSpec",
    "TimePreset",
    "filter_transactions",
    "paginate",
    "preset_date_range",
    "show_more",
    "sort_transactions",
]
