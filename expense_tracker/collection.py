"""Immutable-per-revision transaction collection.

Every mutation (category edit, hidden toggle, bulk hide) returns a new
:class:`TransactionCollection`; the previous value is never modified, so a
reader holding a reference always sees a complete revision. The owner swaps
its reference in one assignment.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from .logging_setup import get_logger
from .models import Category, Transaction

_logger = get_logger("expense_tracker.collection")


@dataclass(frozen=True, slots=True)
class TransactionCollection:
    transactions: tuple[Transaction, ...] = ()

    @classmethod
    def of(cls, transactions: Iterable[Transaction]) -> TransactionCollection:
        return cls(tuple(transactions))

    def __len__(self) -> int:
        return len(self.transactions)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.transactions)

    def __getitem__(self, index: int) -> Transaction:
        return self.transactions[index]

    def get(self, transaction_id: str) -> Transaction | None:
        for tx in self.transactions:
            if tx.id == transaction_id:
                return tx
        return None

    # ---- mutations (each returns a new revision) ---------------------------

    def recategorize(self, transaction_id: str, name: str, sub: str = "") -> TransactionCollection:
        """Assign a manual category to one transaction.

        ``name`` is trimmed and must be non-empty; ``sub`` may be empty.
        An unknown id raises ``KeyError``.
        """

        name = name.strip()
        if not name:
            raise ValueError("category name cannot be empty")
        category = Category(name=name, sub=sub.strip())
        return self._replace_one(transaction_id, category=category)

    def toggle_hidden(self, transaction_id: str) -> TransactionCollection:
        tx = self.get(transaction_id)
        if tx is None:
            raise KeyError(transaction_id)
        return self._replace_one(transaction_id, hidden=not tx.hidden)

    def set_hidden(
        self, transaction_ids: Iterable[str], hidden: bool = True
    ) -> TransactionCollection:
        """Set ``hidden`` on every listed transaction (bulk hide/unhide)."""

        ids = set(transaction_ids)
        updated = tuple(
            tx.model_copy(update={"hidden": hidden}) if tx.id in ids else tx
            for tx in self.transactions
        )
        _logger.debug("set hidden=%s on %d transactions", hidden, len(ids))
        return TransactionCollection(updated)

    def _replace_one(self, transaction_id: str, **changes: object) -> TransactionCollection:
        found = False
        updated: list[Transaction] = []
        for tx in self.transactions:
            if tx.id == transaction_id:
                tx = tx.model_copy(update=changes)
                found = True
            updated.append(tx)
        if not found:
            raise KeyError(transaction_id)
        return TransactionCollection(tuple(updated))

    # ---- read helpers ---------------------------------------------------------

    def categories(self) -> list[str]:
        """Sorted distinct category names."""

        return sorted(
            {tx.category.name for tx in self.transactions if tx.category and tx.category.name}
        )

    def subcategories(self, category: str) -> list[str]:
        """Sorted distinct non-empty subcategories of ``category``."""

        return sorted(
            {
                tx.category.sub
                for tx in self.transactions
                if tx.category and tx.category.name == category and tx.category.sub
            }
        )

    def date_bounds(self) -> tuple[str, str] | None:
        """``(earliest, latest)`` date present, or ``None`` for an empty collection."""

        dates = sorted(tx.date for tx in self.transactions if tx.date)
        if not dates:
            return None
        return dates[0], dates[-1]


__all__ = ["TransactionCollection"]
