import json

import pytest
from typer.testing import CliRunner

from expense_tracker.cli import app
from expense_tracker.snapshot import read_snapshot

runner = CliRunner()
QUIET = {"EXPENSE_TRACKER_LOG_LEVEL": "WARNING"}


def _invoke(*args: str, env: dict[str, str] | None = None):
    return runner.invoke(app, [str(a) for a in args], env={**QUIET, **(env or {})})


@pytest.fixture
def snapshot(tmp_path, card_csv, account_csv):
    card = tmp_path / "card_transactions.csv"
    card.write_text(card_csv, encoding="cp1252")
    account = tmp_path / "account_transactions.csv"
    account.write_text(account_csv, encoding="utf-8-sig")
    target = tmp_path / "snap.json"

    result = _invoke("import", card, account, "--output", target)
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {"imported": 7, "snapshot": str(target)}
    return target


def test_import_writes_snapshot(snapshot):
    assert len(read_snapshot(snapshot)) == 7


def test_import_skips_unknown_file(tmp_path, card_csv):
    card = tmp_path / "card_transactions.csv"
    card.write_text(card_csv, encoding="cp1252")
    notes = tmp_path / "statement.csv"
    notes.write_text("x", encoding="utf-8")
    target = tmp_path / "out.json"

    result = _invoke("import", notes, card, "--output", target)
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {"imported": 4, "snapshot": str(target)}


def test_import_reports_malformed_statement(tmp_path):
    bad = tmp_path / "account_transactions.csv"
    bad.write_text('"Date de transaction";"Debit"\n', encoding="utf-8")
    result = _invoke("import", bad, "--output", tmp_path / "out.json")
    assert result.exit_code == 1
    assert "Error: account statement header mismatch" in result.output
    assert not (tmp_path / "out.json").exists()


def test_list_paginates_with_configured_page_size(snapshot):
    result = _invoke("list", "--snapshot", snapshot, env={"EXPENSE_TRACKER_PAGE_SIZE": "2"})
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["total"] == 7
    assert payload["shown"] == 2
    assert [tx["date"] for tx in payload["transactions"]] == ["2024-03-25", "2024-03-10"]


def test_list_filters_and_sorts(snapshot):
    result = _invoke(
        "list",
        "--snapshot",
        snapshot,
        "--type",
        "income",
        "--sort",
        "amount",
        "--direction",
        "ascending",
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [tx["amount"] for tx in payload["transactions"]] == [25.0, 2500.0]
    assert all(tx["type"] == "income" for tx in payload["transactions"])


def test_list_rejects_unknown_sort_key(snapshot):
    result = _invoke("list", "--snapshot", snapshot, "--sort", "colour")
    assert result.exit_code == 1
    assert "Error: unknown sort key" in result.output


def test_summary_excludes_hidden_by_default(snapshot):
    result = _invoke("summary", "--snapshot", snapshot)
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["totals"] == {"expenses": 1275.03, "income": 2525.0, "balance": 1249.97}
    assert [m["month"] for m in payload["monthly"]] == ["2024-03"]

    result = _invoke("summary", "--snapshot", snapshot, "--include-hidden")
    assert json.loads(result.stdout)["totals"]["expenses"] == 1787.53


def test_rolling_mean(snapshot):
    result = _invoke("rolling-mean", "--snapshot", snapshot, "--window", "7")
    assert result.exit_code == 0, result.output
    series = json.loads(result.stdout)
    dates = [p["date"] for p in series]
    assert dates == sorted(dates)
    # Only visible expenses: the rent on 03-02 is the first point.
    assert series[0]["date"] == "2024-03-02"
    assert series[0]["values"]["Housing"] == 176.36


def test_rolling_mean_rejects_bad_window(snapshot):
    result = _invoke("rolling-mean", "--snapshot", snapshot, "--window", "0")
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_recategorize_updates_snapshot(snapshot):
    tx_id = read_snapshot(snapshot)[0].id
    result = _invoke("recategorize", "--snapshot", snapshot, tx_id, "Travel", "Flights")
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["category"] == {"name": "Travel", "sub": "Flights"}
    assert str(read_snapshot(snapshot).get(tx_id).category) == "Travel/Flights"


def test_recategorize_unknown_id(snapshot):
    result = _invoke("recategorize", "--snapshot", snapshot, "nope", "Travel")
    assert result.exit_code == 1
    assert "Error: Unknown transaction id: nope" in result.output


def test_toggle_hidden(snapshot):
    tx = read_snapshot(snapshot)[0]
    result = _invoke("toggle-hidden", "--snapshot", snapshot, tx.id)
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["hidden"] is (not tx.hidden)
    assert read_snapshot(snapshot).get(tx.id).hidden is (not tx.hidden)


def test_hide_filtered_and_unhide(snapshot):
    result = _invoke("hide-filtered", "--snapshot", snapshot, "--search", "uber")
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {"updated": 1, "hidden": True}
    hidden = [tx.description for tx in read_snapshot(snapshot) if tx.hidden]
    assert "UBER EATS LAUSANNE" in hidden

    result = _invoke("hide-filtered", "--snapshot", snapshot, "--unhide")
    assert json.loads(result.stdout) == {"updated": 7, "hidden": False}
    assert not any(tx.hidden for tx in read_snapshot(snapshot))


def test_missing_snapshot_is_reported(tmp_path):
    result = _invoke("list", "--snapshot", tmp_path / "missing.json")
    assert result.exit_code == 1
    assert "Error: Error reading file" in result.output
