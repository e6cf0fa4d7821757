"""Chart-ready aggregates over a transaction view.

Every function takes a view (usually the output of
:func:`expense_tracker.query.filter_transactions`) and returns plain
dicts/lists. Sums are accumulated as :class:`~decimal.Decimal` and rounded
half-up to 2 decimals on output.

:func:`rolling_mean_series` is comparatively expensive and is meant to be run
on explicit request only; nothing here caches or recomputes it implicitly.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TypedDict

from .config import DEFAULT_ROLLING_WINDOW_DAYS
from .logging_setup import get_logger
from .models import DEFAULT_CATEGORY_NAME, DEFAULT_SUBCATEGORY_NAME, Transaction
from .query import QueryCriteria, SortSpec, filter_transactions

_logger = get_logger("expense_tracker.aggregation")

MONTH_NAMES: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

_CENT = Decimal("0.01")


# ---------------------------------------------------------------------------
# Output shapes
# ---------------------------------------------------------------------------


class Totals(TypedDict):
    expenses: float
    income: float
    balance: float


class MonthlyPoint(TypedDict):
    month: str  # YYYY-MM
    label: str  # "Mar 2024"
    expenses: float
    income: float


class SubcategorySlice(TypedDict):
    name: str
    value: float


class CategorySlice(TypedDict):
    name: str
    value: float
    subcategories: list[SubcategorySlice]


class RollingMeanPoint(TypedDict):
    date: str
    axis_label: str  # "5 Mar"
    tooltip_label: str  # "5 Mar 2024"
    values: dict[str, float]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _round2(d: Decimal) -> float:
    return float(d.quantize(_CENT, rounding=ROUND_HALF_UP))


def _dec(x: float) -> Decimal:
    # str() keeps the shortest repr, avoiding binary noise in the sums.
    return Decimal(str(x))


def _magnitude(tx: Transaction) -> Decimal:
    return abs(_dec(tx.value))


def _category_name(tx: Transaction) -> str:
    return (tx.category.name if tx.category else "") or DEFAULT_CATEGORY_NAME


def _subcategory_name(tx: Transaction) -> str:
    return (tx.category.sub if tx.category else "") or DEFAULT_SUBCATEGORY_NAME


def _parse_date(raw: str) -> date | None:
    try:
        return date.fromisoformat(raw)
    except (TypeError, ValueError):
        return None


def format_month(year_month: str) -> str:
    """``"2024-03"`` → ``"Mar 2024"``."""

    year, month = year_month.split("-")[:2]
    return f"{MONTH_NAMES[int(month) - 1]} {year}"


def format_axis_date(d: date) -> str:
    return f"{d.day} {MONTH_NAMES[d.month - 1]}"


def format_tooltip_date(d: date) -> str:
    return f"{d.day} {MONTH_NAMES[d.month - 1]} {d.year}"


# ---------------------------------------------------------------------------
# Chart input
# ---------------------------------------------------------------------------


def chart_view(
    transactions: Iterable[Transaction],
    criteria: QueryCriteria | None = None,
    *,
    hide_from_charts: bool = True,
) -> list[Transaction]:
    """Query output fed to charts.

    ``hide_from_charts`` decides whether hidden transactions reach the charts
    at all; it overrides ``criteria.exclude_hidden``, which only governs the
    table view.
    """

    effective = replace(criteria or QueryCriteria(), exclude_hidden=hide_from_charts)
    return filter_transactions(transactions, effective, SortSpec())


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def totals(view: Iterable[Transaction]) -> Totals:
    """Period totals: expenses (magnitude), income, and their difference."""

    expenses = Decimal(0)
    income = Decimal(0)
    for tx in view:
        if tx.type == "expense":
            expenses += _magnitude(tx)
        elif tx.type == "income":
            income += _dec(tx.value)
    return {
        "expenses": _round2(expenses),
        "income": _round2(income),
        "balance": _round2(income - expenses),
    }


def monthly_series(view: Iterable[Transaction]) -> list[MonthlyPoint]:
    """Expenses and income per ``YYYY-MM``, oldest month first."""

    buckets: dict[tuple[int, int], list[Decimal]] = {}
    for tx in view:
        d = _parse_date(tx.date)
        if d is None:
            continue
        acc = buckets.setdefault((d.year, d.month), [Decimal(0), Decimal(0)])
        if tx.type == "expense":
            acc[0] += _magnitude(tx)
        elif tx.type == "income":
            acc[1] += _dec(tx.value)

    points: list[MonthlyPoint] = []
    # Tuple keys sort chronologically by (year, month).
    for year, month in sorted(buckets):
        key = f"{year:04d}-{month:02d}"
        expenses, income = buckets[(year, month)]
        points.append(
            {
                "month": key,
                "label": format_month(key),
                "expenses": _round2(expenses),
                "income": _round2(income),
            }
        )
    return points


def category_breakdown(view: Iterable[Transaction]) -> list[CategorySlice]:
    """Magnitude per category with a nested per-subcategory split.

    Categories are sorted by value, largest first; subcategories keep first-seen
    order (see :func:`subcategory_breakdown` for the sorted variant).
    """

    per_cat: dict[str, Decimal] = defaultdict(Decimal)
    per_sub: dict[str, dict[str, Decimal]] = defaultdict(lambda: defaultdict(Decimal))
    for tx in view:
        name = _category_name(tx)
        mag = _magnitude(tx)
        per_cat[name] += mag
        per_sub[name][_subcategory_name(tx)] += mag

    slices: list[CategorySlice] = [
        {
            "name": name,
            "value": _round2(total),
            "subcategories": [
                {"name": sub, "value": _round2(v)} for sub, v in per_sub[name].items()
            ],
        }
        for name, total in per_cat.items()
    ]
    slices.sort(key=lambda s: s["value"], reverse=True)
    return slices


def subcategory_breakdown(view: Iterable[Transaction], category: str) -> list[SubcategorySlice]:
    """Subcategory split of one category, largest first; ``[]`` when absent."""

    for cat in category_breakdown(view):
        if cat["name"] == category:
            return sorted(cat["subcategories"], key=lambda s: s["value"], reverse=True)
    return []


def rolling_mean_series(
    view: Sequence[Transaction],
    window_days: int = DEFAULT_ROLLING_WINDOW_DAYS,
) -> list[RollingMeanPoint]:
    """Per-category time-averaged daily spend over a trailing window.

    For each distinct date ``d`` in the view (ascending), every category's
    value is the sum of ``abs(value)`` of its transactions dated within
    ``[d - (window_days - 1), d]`` divided by ``window_days``. The divisor is
    the window length, not the number of transactions or active days, so
    sparse data yields a lower daily rate rather than a sample mean.
    """

    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days < 1:
        raise ValueError("window_days must be a positive integer")

    per_day: dict[date, dict[str, Decimal]] = defaultdict(lambda: defaultdict(Decimal))
    categories: dict[str, None] = {}
    for tx in view:
        d = _parse_date(tx.date)
        if d is None:
            continue
        name = _category_name(tx)
        categories.setdefault(name, None)
        per_day[d][name] += _magnitude(tx)

    days = sorted(per_day)
    divisor = Decimal(window_days)
    span = timedelta(days=window_days - 1)

    result: list[RollingMeanPoint] = []
    running: dict[str, Decimal] = defaultdict(Decimal)
    lo = 0
    for d in days:
        for name, amt in per_day[d].items():
            running[name] += amt
        # Evict days that fell out of [d - span, d].
        while days[lo] < d - span:
            for name, amt in per_day[days[lo]].items():
                running[name] -= amt
            lo += 1
        result.append(
            {
                "date": d.isoformat(),
                "axis_label": format_axis_date(d),
                "tooltip_label": format_tooltip_date(d),
                "values": {name: _round2(running[name] / divisor) for name in categories},
            }
        )

    _logger.debug(
        "rolling mean: %d dates, %d categories, window %d days",
        len(result),
        len(categories),
        window_days,
    )
    return result


__all__ = [
    "MONTH_NAMES",
    "CategorySlice",
    "MonthlyPoint",
    "RollingMeanPoint",
    "SubcategorySlice",
    "Totals",
    "category_breakdown",
    "chart_view",
    "format_axis_date",
    "format_month",
    "format_tooltip_date",
    "monthly_series",
    "rolling_mean_series",
    "subcategory_breakdown",
    "totals",
]
