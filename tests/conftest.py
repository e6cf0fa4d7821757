# ruff: noqa: E501
"""Pytest configuration for test isolation and shared statement fixtures.

Settings and the log level are read from ``EXPENSE_TRACKER_*`` environment
variables, and :func:`expense_tracker.logging_setup.configure_logging` is a
process-wide one-shot. A developer's shell (or a stray ``.env``) would leak
into assertions otherwise, so every test starts from a clean environment and
an unconfigured package logger.
"""

from __future__ import annotations

import os
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import TypeAlias

import pytest

from expense_tracker.logging_setup import reset_logging
from expense_tracker.models import Category, Transaction


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop ``EXPENSE_TRACKER_*`` variables and run from an empty directory.

    Running in ``tmp_path`` keeps the CLI from picking up a ``.env`` file in
    the repository checkout.
    """

    for key in list(os.environ):
        if key.startswith("EXPENSE_TRACKER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_logging()
    yield
    reset_logging()


def dedent(s: str) -> str:
    # Keep internal newlines, but normalize indentation for readability.
    return textwrap.dedent(s).lstrip("\n").rstrip() + "\n"


CARD_HEADER = (
    "Numéro de compte;Numéro de carte;Titulaire de compte/carte;Date d'achat;"
    "Texte comptable;Secteur;Montant;Monnaie originale;Cours;"
    "Date de comptabilisation;Debit;Credit"
)

ACCOUNT_HEADER = (
    '"Date de transaction";"Description1";"Description2";"Description3";'
    '"Debit";"Credit";"Solde"'
)


@pytest.fixture
def card_csv() -> str:
    return dedent(
        f"""
        sep=;
        {CARD_HEADER}
        1111;5555 XXXX XXXX 0001;JANE DOE;05.03.2024;Paiement à une carte;;12.50;CHF;;06.03.2024;12,50;
        1111;5555 XXXX XXXX 0001;JANE DOE;07.03.2024;UBER EATS LAUSANNE;Restaurants;30.00;CHF;;08.03.2024;30.00;
        1111;5555 XXXX XXXX 0001;JANE DOE;09.03.2024;HOTEL PARIS;Hôtels;10.00;EUR;1.0525;;;
        1111;5555 XXXX XXXX 0001;JANE DOE;10.03.2024;REMBOURSEMENT ZALANDO;;25.00;CHF;;11.03.2024;;25,00
        1111;5555 XXXX XXXX 0001;JANE DOE;32.13.2024;BROKEN DATE;;5.00;CHF;;;5.00;
        1111;5555 XXXX XXXX 0001;JANE DOE;12.03.2024;ZERO AMOUNT;;0.00;CHF;;;0.00;
        """
    )


@pytest.fixture
def account_csv() -> str:
    return dedent(
        f"""
        {ACCOUNT_HEADER}
        "2024-03-25";"Hopitaux Universitaires de Geneve";"Salaire mars";"";"";"2'500.00";"10'000.00"
        "2024-03-02";"Jane Doe, 12 Rue du Lac";"Loyer";"";"1 234,50";"";"7'500.00"
        "2024-03-10";"TRANSFERT D'UN COMPTE";"";"";"500,00";"";"7'000.00"
        "2024-03-11";"short line"
        "not-a-date";"MIGROS";"";"";"10,00";"";""
        "2024-03-12";"MIGROS";"";"";"";"";""
        """
    )


TxFactory: TypeAlias = Callable[..., Transaction]


@pytest.fixture
def make_tx() -> TxFactory:
    """Build a normalized-looking transaction with terse keyword arguments."""

    def _make(
        tx_id: str,
        date: str = "2024-03-01",
        value: float = -10.0,
        *,
        category: str | None = "Food",
        sub: str = "Restaurant",
        description: str = "",
        hidden: bool = False,
        source: str = "card",
    ) -> Transaction:
        return Transaction(
            id=tx_id,
            date=date,
            description=description or tx_id,
            amount=abs(value),
            value=value,
            type="expense" if value < 0 else "income",
            category=Category(name=category, sub=sub) if category is not None else None,
            source=source,
            hidden=hidden,
        )

    return _make
