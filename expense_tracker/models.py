"""Data models and type aliases for ``expense_tracker``.

The canonical :class:`Transaction` is the only persistent entity. It is a
frozen pydantic model so that every mutation (category edit, hidden toggle)
produces a new value via ``model_copy``; the collection that owns it is
replaced wholesale in the same way (see :mod:`expense_tracker.collection`).

Field names serialize in camelCase (``originalAmount``/``originalCurrency``)
to keep snapshot files compatible with exports made by earlier versions.
Unknown keys found in a snapshot record are kept as extras and written back
unchanged.
"""

from __future__ import annotations

import secrets
from collections.abc import Mapping, Sequence
from typing import Any, Literal, TypeAlias

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

TransactionType = Literal["expense", "income"]
TransactionSource = Literal["card", "account"]

TRANSACTION_TYPES: tuple[str, ...] = ("expense", "income")

DEFAULT_CATEGORY_NAME = "Miscellaneous"
DEFAULT_SUBCATEGORY_NAME = "Other"
UNCATEGORIZED_LABEL = "Uncategorized"


class Category(BaseModel):
    """A ``(name, sub)`` pair; ``sub`` may be empty."""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str
    sub: str = ""

    @field_validator("sub", mode="before")
    @classmethod
    def _none_sub_is_empty(cls, v: object) -> object:
        return "" if v is None else v

    def __str__(self) -> str:
        return f"{self.name}/{self.sub}" if self.sub else self.name


class Transaction(BaseModel):
    """A single canonical transaction.

    Attributes
    ----------
    id:
        Opaque identifier assigned at normalization time (``card-…`` or
        ``account-…``); never reassigned.
    date:
        ``YYYY-MM-DD``. Normalizers never emit an empty or invalid date, but
        records restored from a snapshot are accepted as-is.
    amount / value:
        ``amount`` is the non-negative settlement-currency magnitude; ``value``
        carries the sign (negative for expenses).
    original_amount / original_currency:
        Card rows only: the pre-conversion amount and currency.
    recipient / sender:
        Account rows only: best-effort counterparty, never both set.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    # Records restored without an id still need one to be editable.
    id: str = Field(default_factory=lambda: f"restored-{secrets.token_hex(8)}")
    date: str = ""
    description: str = ""
    amount: float = 0.0
    value: float = 0.0
    type: TransactionType = "expense"
    category: Category | None = None
    source: TransactionSource | None = None
    hidden: bool = False
    original_amount: float | None = Field(default=None, alias="originalAmount")
    original_currency: str | None = Field(default=None, alias="originalCurrency")
    recipient: str | None = None
    sender: str | None = None

    # Snapshot values of known fields that did not fit the field type, keyed
    # by their output name. Written back unchanged by to_record().
    _restored_raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    @model_validator(mode="wrap")
    @classmethod
    def _set_aside_unusable_fields(cls, data: Any, handler: Any) -> Any:
        """Load records from older or hand-edited snapshots without failing.

        A known field whose value has the wrong shape falls back to its
        default; the raw value is kept so an export reproduces it verbatim.
        """

        if not isinstance(data, dict):
            return handler(data)
        clean = dict(data)
        raw: dict[str, Any] = {}
        for key, value in data.items():
            name = _FIELD_NAMES.get(key)
            if name is None:
                continue
            if name == "id":
                if value is None or isinstance(value, dict | list):
                    del clean[key]
                elif not isinstance(value, str):
                    clean[key] = str(value)
                continue
            try:
                _FIELD_ADAPTERS[name].validate_python(value)
            except ValidationError:
                raw[_OUTPUT_KEYS[name]] = clean.pop(key)
        tx = handler(clean)
        if raw:
            tx._restored_raw = raw
        return tx

    @property
    def category_label(self) -> str:
        """Display label; ``Uncategorized`` when no category was ever assigned."""

        return str(self.category) if self.category is not None else UNCATEGORIZED_LABEL

    def to_record(self) -> dict[str, object]:
        """Return the JSON-ready mapping written to snapshots."""

        record = self.model_dump(mode="json", by_alias=True)
        record.update(self._restored_raw)
        return record

    def model_copy(
        self, *, update: Mapping[str, Any] | None = None, deep: bool = False
    ) -> Transaction:
        copy = super().model_copy(update=update, deep=deep)
        if update and self._restored_raw:
            # An edited field no longer carries its restored raw value.
            edited = {_OUTPUT_KEYS.get(k, k) for k in update}
            copy._restored_raw = {
                k: v for k, v in self._restored_raw.items() if k not in edited
            }
        return copy


# Field name, and alias where set, mapped to the attribute name.
_FIELD_NAMES: dict[str, str] = {
    key: name
    for name, field in Transaction.model_fields.items()
    for key in (name, field.alias or name)
}
_OUTPUT_KEYS: dict[str, str] = {
    name: field.alias or name for name, field in Transaction.model_fields.items()
}
_FIELD_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    name: TypeAdapter(field.annotation) for name, field in Transaction.model_fields.items()
}


# A read-only, ordered view over transactions (query results, chart inputs).
Transactions: TypeAlias = Sequence[Transaction]


__all__ = [
    "DEFAULT_CATEGORY_NAME",
    "DEFAULT_SUBCATEGORY_NAME",
    "TRANSACTION_TYPES",
    "UNCATEGORIZED_LABEL",
    "Category",
    "Transaction",
    "TransactionSource",
    "TransactionType",
    "Transactions",
]
