"""Public interface for the ``expense_tracker`` package.

This module exposes the import, query, aggregation and snapshot functions and
the public models as the stable import surface. There is no runtime logic
here, only symbol re-exports.
"""

from .aggregation import (
    CategorySlice,
    MonthlyPoint,
    RollingMeanPoint,
    SubcategorySlice,
    Totals,
    category_breakdown,
    chart_view,
    monthly_series,
    rolling_mean_series,
    subcategory_breakdown,
    totals,
)
from .classifier import classify, explain
from .collection import TransactionCollection
from .errors import (
    ExpenseTrackerError,
    FileReadError,
    SnapshotValidationError,
    StatementFormatError,
)
from .ingest import detect_format, import_statements, import_statements_async
from .models import Category, Transaction, Transactions
from .normalizers import StatementNormalizer
from .query import (
    QueryCriteria,
    SortSpec,
    TimePreset,
    filter_transactions,
    paginate,
    preset_date_range,
    show_more,
)
from .snapshot import export_snapshot, load_snapshot, read_snapshot, save_snapshot

__all__ = [
    # Import
    "detect_format",
    "import_statements",
    "import_statements_async",
    "StatementNormalizer",
    "classify",
    "explain",
    # Query
    "QueryCriteria",
    "SortSpec",
    "TimePreset",
    "filter_transactions",
    "paginate",
    "preset_date_range",
    "show_more",
    # Aggregation
    "chart_view",
    "totals",
    "monthly_series",
    "category_breakdown",
    "subcategory_breakdown",
    "rolling_mean_series",
    # Snapshot
    "export_snapshot",
    "load_snapshot",
    "read_snapshot",
    "save_snapshot",
    # Models / types
    "Category",
    "Transaction",
    "Transactions",
    "TransactionCollection",
    "Totals",
    "MonthlyPoint",
    "CategorySlice",
    "SubcategorySlice",
    "RollingMeanPoint",
    # Errors
    "ExpenseTrackerError",
    "FileReadError",
    "SnapshotValidationError",
    "StatementFormatError",
]
