import pytest

from expense_tracker.collection import TransactionCollection
from expense_tracker.models import Category


@pytest.fixture
def collection(make_tx):
    return TransactionCollection.of(
        [
            make_tx("a", "2024-01-05", category="Food", sub="Restaurant"),
            make_tx("b", "2024-02-10", category="Home", sub="Groceries"),
            make_tx("c", "2024-02-15", category="Home", sub=""),
            make_tx("d", "2024-03-01", category=None),
        ]
    )


def test_recategorize_returns_new_revision(collection):
    updated = collection.recategorize("a", "  Travel ", " Flights ")

    assert updated.get("a").category == Category(name="Travel", sub="Flights")
    # The previous revision is untouched.
    assert collection.get("a").category == Category(name="Food", sub="Restaurant")
    assert [tx.id for tx in updated] == [tx.id for tx in collection]


def test_recategorize_rejects_empty_name(collection):
    with pytest.raises(ValueError):
        collection.recategorize("a", "   ")


def test_unknown_id_raises_key_error(collection):
    with pytest.raises(KeyError):
        collection.recategorize("zzz", "Travel")
    with pytest.raises(KeyError):
        collection.toggle_hidden("zzz")


def test_toggle_hidden_twice_restores(collection):
    once = collection.toggle_hidden("b")
    assert once.get("b").hidden is True
    assert once.toggle_hidden("b").get("b").hidden is False
    assert collection.get("b").hidden is False


def test_set_hidden_bulk(collection):
    updated = collection.set_hidden(["a", "c"])
    assert [tx.hidden for tx in updated] == [True, False, True, False]
    assert [tx.hidden for tx in updated.set_hidden(["a"], hidden=False)] == [
        False,
        False,
        True,
        False,
    ]


def test_read_helpers(collection):
    assert len(collection) == 4
    assert collection[0].id == "a"
    assert collection.get("missing") is None
    assert collection.categories() == ["Food", "Home"]
    assert collection.subcategories("Home") == ["Groceries"]
    assert collection.date_bounds() == ("2024-01-05", "2024-03-01")
    assert TransactionCollection().date_bounds() is None
