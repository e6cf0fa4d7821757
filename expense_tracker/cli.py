# ruff: noqa: I001
"""Typer console interface for ``expense_tracker``.

Every command works on a snapshot file: ``import`` creates one from statement
exports, the read commands (``list``, ``summary``, ``rolling-mean``) print
JSON computed from it, and the edit commands (``recategorize``,
``toggle-hidden``, ``hide-filtered``) write the new revision back in place.

Library errors are reported as ``Error: <message>`` on stderr with exit code
1. Settings come from ``EXPENSE_TRACKER_*`` variables, optionally provided via
a local ``.env`` loaded with ``python-dotenv``.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .aggregation import (
    category_breakdown,
    chart_view,
    monthly_series,
    rolling_mean_series,
    totals,
)
from .config import Settings, load_settings
from .errors import ExpenseTrackerError
from .ingest import import_statements
from .logging_setup import configure_logging, get_logger
from .models import TRANSACTION_TYPES, Transaction
from .query import (
    QueryCriteria,
    SortSpec,
    filter_transactions,
    paginate,
    preset_date_range,
)
from .snapshot import read_snapshot, save_snapshot, snapshot_filename

_logger = get_logger("expense_tracker.cli")


# ---- Small module-level helpers used by CLI commands -------------------------


def _emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _settings(ctx: typer.Context) -> Settings:
    if isinstance(ctx.obj, Settings):
        return ctx.obj
    return load_settings()


def _build_criteria(
    *,
    start: str | None,
    end: str | None,
    types: list[str] | None,
    category: str | None,
    subcategory: str | None,
    search: str | None,
    min_amount: float | None,
    max_amount: float | None,
    exclude_hidden: bool,
    preset: str | None,
    transactions: Iterable[Transaction],
) -> QueryCriteria:
    """Assemble :class:`QueryCriteria` from command options.

    A ``--preset`` only fills the bounds not given explicitly.
    """

    if preset:
        try:
            p_start, p_end = preset_date_range(preset, transactions, today=date.today())
        except ValueError as e:
            raise ValueError(f"unknown time preset: {preset!r}") from e
        start = start or p_start
        end = end or p_end

    selected = frozenset(t.strip().lower() for t in types) if types else None
    if selected is not None:
        unknown = sorted(selected - set(TRANSACTION_TYPES))
        if unknown:
            raise ValueError(f"unknown transaction type(s): {', '.join(unknown)}")

    return QueryCriteria(
        start_date=start,
        end_date=end,
        types=selected if selected is not None else frozenset(TRANSACTION_TYPES),
        category=category,
        subcategory=subcategory,
        search=search,
        min_amount=min_amount,
        max_amount=max_amount,
        exclude_hidden=exclude_hidden,
    )


# ---- Module-level option objects (no calls in parameter defaults) ------------


SNAPSHOT_OPTION: OptionInfo = typer.Option(
    ...,
    "--snapshot",
    "-s",
    help="Snapshot JSON file to read (and, for edit commands, rewrite).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports a readable error instead
)
OUTPUT_OPTION: OptionInfo = typer.Option(
    ...,
    "--output",
    "-o",
    help="Snapshot file to write (default: expense_tracker_data_<timestamp>.json).",
    dir_okay=False,
)
START_OPTION: OptionInfo = typer.Option(..., "--start", help="Inclusive start date YYYY-MM-DD.")
END_OPTION: OptionInfo = typer.Option(..., "--end", help="Inclusive end date YYYY-MM-DD.")
PRESET_OPTION: OptionInfo = typer.Option(
    ...,
    "--preset",
    help=(
        "Time preset filling unset bounds: all, currentYear, lastMonth, "
        "last3Months, last6Months, last12Months, last2Years."
    ),
)
TYPE_OPTION: OptionInfo = typer.Option(
    ..., "--type", help="Transaction type to keep (expense/income); repeatable."
)
CATEGORY_OPTION: OptionInfo = typer.Option(..., "--category", help="Exact category name.")
SUBCATEGORY_OPTION: OptionInfo = typer.Option(
    ..., "--subcategory", help="Exact subcategory name."
)
SEARCH_OPTION: OptionInfo = typer.Option(
    ..., "--search", help="Case-insensitive substring of the description."
)
MIN_AMOUNT_OPTION: OptionInfo = typer.Option(..., "--min-amount", help="Minimum amount.")
MAX_AMOUNT_OPTION: OptionInfo = typer.Option(..., "--max-amount", help="Maximum amount.")
EXCLUDE_HIDDEN_OPTION: OptionInfo = typer.Option(
    ..., "--exclude-hidden", help="Drop hidden transactions from the table view."
)
SORT_OPTION: OptionInfo = typer.Option(
    ...,
    "--sort",
    help="Sort key: date, amount, value, category, subcategory, description, type, source.",
)
DIRECTION_OPTION: OptionInfo = typer.Option(
    ..., "--direction", help="Sort direction: ascending or descending."
)
COUNT_OPTION: OptionInfo = typer.Option(
    ..., "--count", help="Number of rows to show (default: EXPENSE_TRACKER_PAGE_SIZE)."
)
ALL_ROWS_OPTION: OptionInfo = typer.Option(..., "--all", help="Show every matching row.")
INCLUDE_HIDDEN_OPTION: OptionInfo = typer.Option(
    ...,
    "--include-hidden/--hide-hidden",
    help=(
        "Whether hidden transactions reach the charts "
        "(default: EXPENSE_TRACKER_HIDE_FROM_CHARTS)."
    ),
)
WINDOW_OPTION: OptionInfo = typer.Option(
    ...,
    "--window",
    help="Rolling window in days (default: EXPENSE_TRACKER_ROLLING_WINDOW_DAYS).",
)
UNHIDE_OPTION: OptionInfo = typer.Option(
    ..., "--unhide", help="Clear the hidden flag instead of setting it."
)


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank/card statement exports into a snapshot, then query, "
        "summarize and edit it. Loads EXPENSE_TRACKER_* settings from a local .env."
    ),
)


@app.command("import")
def import_cmd(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Statement files (*card_transactions*, *account_transactions*)."),
    ],
    *,
    output: Annotated[Path | None, OUTPUT_OPTION] = None,
) -> None:
    """Normalize statement files into a new snapshot, newest first."""

    try:
        collection = import_statements(paths)
        target = save_snapshot(collection, output or Path.cwd() / snapshot_filename())
    except (ExpenseTrackerError, OSError) as e:
        _fail(str(e))
    _emit({"imported": len(collection), "snapshot": str(target)})


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    *,
    start: Annotated[str | None, START_OPTION] = None,
    end: Annotated[str | None, END_OPTION] = None,
    preset: Annotated[str | None, PRESET_OPTION] = None,
    types: Annotated[list[str] | None, TYPE_OPTION] = None,
    category: Annotated[str | None, CATEGORY_OPTION] = None,
    subcategory: Annotated[str | None, SUBCATEGORY_OPTION] = None,
    search: Annotated[str | None, SEARCH_OPTION] = None,
    min_amount: Annotated[float | None, MIN_AMOUNT_OPTION] = None,
    max_amount: Annotated[float | None, MAX_AMOUNT_OPTION] = None,
    exclude_hidden: Annotated[bool, EXCLUDE_HIDDEN_OPTION] = False,
    sort: Annotated[str, SORT_OPTION] = "date",
    direction: Annotated[str, DIRECTION_OPTION] = "descending",
    count: Annotated[int | None, COUNT_OPTION] = None,
    all_rows: Annotated[bool, ALL_ROWS_OPTION] = False,
) -> None:
    """Print the filtered, sorted table view as JSON."""

    settings = _settings(ctx)
    try:
        collection = read_snapshot(snapshot)
        criteria = _build_criteria(
            start=start,
            end=end,
            types=types,
            category=category,
            subcategory=subcategory,
            search=search,
            min_amount=min_amount,
            max_amount=max_amount,
            exclude_hidden=exclude_hidden,
            preset=preset,
            transactions=collection,
        )
        view = filter_transactions(collection, criteria, SortSpec(sort, direction))
    except (ExpenseTrackerError, ValueError) as e:
        _fail(str(e))

    shown = view if all_rows else paginate(view, settings.page_size if count is None else count)
    _emit(
        {
            "total": len(view),
            "shown": len(shown),
            "transactions": [tx.to_record() for tx in shown],
        }
    )


@app.command("summary")
def summary_cmd(
    ctx: typer.Context,
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    *,
    start: Annotated[str | None, START_OPTION] = None,
    end: Annotated[str | None, END_OPTION] = None,
    preset: Annotated[str | None, PRESET_OPTION] = None,
    types: Annotated[list[str] | None, TYPE_OPTION] = None,
    category: Annotated[str | None, CATEGORY_OPTION] = None,
    search: Annotated[str | None, SEARCH_OPTION] = None,
    include_hidden: Annotated[bool | None, INCLUDE_HIDDEN_OPTION] = None,
) -> None:
    """Print totals, monthly series and category breakdown as JSON."""

    settings = _settings(ctx)
    hide = settings.hide_from_charts if include_hidden is None else not include_hidden
    try:
        collection = read_snapshot(snapshot)
        criteria = _build_criteria(
            start=start,
            end=end,
            types=types,
            category=category,
            subcategory=None,
            search=search,
            min_amount=None,
            max_amount=None,
            exclude_hidden=False,
            preset=preset,
            transactions=collection,
        )
    except (ExpenseTrackerError, ValueError) as e:
        _fail(str(e))

    view = chart_view(collection, criteria, hide_from_charts=hide)
    _emit(
        {
            "totals": totals(view),
            "monthly": monthly_series(view),
            "categories": category_breakdown(view),
        }
    )


@app.command("rolling-mean")
def rolling_mean_cmd(
    ctx: typer.Context,
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    *,
    window: Annotated[int | None, WINDOW_OPTION] = None,
    start: Annotated[str | None, START_OPTION] = None,
    end: Annotated[str | None, END_OPTION] = None,
    preset: Annotated[str | None, PRESET_OPTION] = None,
    category: Annotated[str | None, CATEGORY_OPTION] = None,
    include_hidden: Annotated[bool | None, INCLUDE_HIDDEN_OPTION] = None,
) -> None:
    """Print the per-category rolling daily average of expenses as JSON."""

    settings = _settings(ctx)
    hide = settings.hide_from_charts if include_hidden is None else not include_hidden
    try:
        collection = read_snapshot(snapshot)
        criteria = _build_criteria(
            start=start,
            end=end,
            types=["expense"],
            category=category,
            subcategory=None,
            search=None,
            min_amount=None,
            max_amount=None,
            exclude_hidden=False,
            preset=preset,
            transactions=collection,
        )
        view = chart_view(collection, criteria, hide_from_charts=hide)
        series = rolling_mean_series(
            view, settings.rolling_window_days if window is None else window
        )
    except (ExpenseTrackerError, ValueError) as e:
        _fail(str(e))
    _emit(series)


@app.command("recategorize")
def recategorize_cmd(
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    transaction_id: Annotated[str, typer.Argument(help="Transaction id.")],
    name: Annotated[str, typer.Argument(help="Category name.")],
    sub: Annotated[str, typer.Argument(help="Optional subcategory.")] = "",
) -> None:
    """Assign a category to one transaction and rewrite the snapshot."""

    try:
        collection = read_snapshot(snapshot).recategorize(transaction_id, name, sub)
        save_snapshot(collection, snapshot)
    except KeyError:
        _fail(f"Unknown transaction id: {transaction_id}")
    except (ExpenseTrackerError, ValueError, OSError) as e:
        _fail(str(e))
    updated = collection.get(transaction_id)
    if updated is not None:
        _logger.info("recategorized %s as %s", transaction_id, updated.category_label)
    _emit(updated.to_record() if updated else None)


@app.command("toggle-hidden")
def toggle_hidden_cmd(
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    transaction_id: Annotated[str, typer.Argument(help="Transaction id.")],
) -> None:
    """Flip the hidden flag of one transaction and rewrite the snapshot."""

    try:
        collection = read_snapshot(snapshot).toggle_hidden(transaction_id)
        save_snapshot(collection, snapshot)
    except KeyError:
        _fail(f"Unknown transaction id: {transaction_id}")
    except (ExpenseTrackerError, OSError) as e:
        _fail(str(e))
    updated = collection.get(transaction_id)
    _emit(updated.to_record() if updated else None)


@app.command("hide-filtered")
def hide_filtered_cmd(
    snapshot: Annotated[Path, SNAPSHOT_OPTION],
    *,
    start: Annotated[str | None, START_OPTION] = None,
    end: Annotated[str | None, END_OPTION] = None,
    preset: Annotated[str | None, PRESET_OPTION] = None,
    types: Annotated[list[str] | None, TYPE_OPTION] = None,
    category: Annotated[str | None, CATEGORY_OPTION] = None,
    subcategory: Annotated[str | None, SUBCATEGORY_OPTION] = None,
    search: Annotated[str | None, SEARCH_OPTION] = None,
    min_amount: Annotated[float | None, MIN_AMOUNT_OPTION] = None,
    max_amount: Annotated[float | None, MAX_AMOUNT_OPTION] = None,
    unhide: Annotated[bool, UNHIDE_OPTION] = False,
) -> None:
    """Hide (or unhide) every transaction matching the filters."""

    try:
        collection = read_snapshot(snapshot)
        criteria = _build_criteria(
            start=start,
            end=end,
            types=types,
            category=category,
            subcategory=subcategory,
            search=search,
            min_amount=min_amount,
            max_amount=max_amount,
            exclude_hidden=False,
            preset=preset,
            transactions=collection,
        )
        ids = [tx.id for tx in filter_transactions(collection, criteria)]
        save_snapshot(collection.set_hidden(ids, hidden=not unhide), snapshot)
    except (ExpenseTrackerError, ValueError, OSError) as e:
        _fail(str(e))
    _emit({"updated": len(ids), "hidden": not unhide})


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables), reads :class:`Settings` and configures
    logging before any subcommand runs.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    settings = load_settings()
    configure_logging(settings.log_level)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
