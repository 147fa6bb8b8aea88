"""CLI tests using Click's test runner."""

import re

from ledgerbook.cli.main import cli
from ledgerbook.domain.errors import StorageError
from ledgerbook.domain.qif_import import QIFImportService


def invoke(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


def created_id(output: str) -> str:
    match = re.search(r"ID: (\d+)", output)
    assert match is not None, output
    return match.group(1)


def setup_account(cli_runner, temp_db) -> tuple[str, str]:
    result = invoke(cli_runner, temp_db, "book", "create", "Household")
    assert result.exit_code == 0
    book_id = created_id(result.output)

    result = invoke(cli_runner, temp_db, "account", "create", book_id, "Checking")
    assert result.exit_code == 0
    return book_id, created_id(result.output)


def test_help_does_not_touch_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "book" in result.output
    assert "import" in result.output


def test_import_summary(cli_runner, temp_db, fixtures_dir):
    _, account_id = setup_account(cli_runner, temp_db)

    result = invoke(
        cli_runner, temp_db, "import", account_id, str(fixtures_dir / "one_missing_amount.qif")
    )

    assert result.exit_code == 0
    assert "Import complete:" in result.output
    assert "Imported: 3 transactions" in result.output
    assert "Failed: 0" in result.output
    assert "Parse errors: 1" in result.output
    assert "Record 2: Missing amount" in result.output


def test_import_rejected_exits_with_error(cli_runner, temp_db, fixtures_dir):
    _, account_id = setup_account(cli_runner, temp_db)

    result = invoke(
        cli_runner, temp_db, "import", account_id, str(fixtures_dir / "all_invalid.qif")
    )

    assert result.exit_code == 1
    assert "Import rejected" in result.output
    assert "Record 1: Missing amount" in result.output

    result = invoke(cli_runner, temp_db, "transaction", "list", account_id)
    assert "No transactions found." in result.output


def test_import_wrong_extension(cli_runner, temp_db, fixtures_dir):
    _, account_id = setup_account(cli_runner, temp_db)

    result = invoke(cli_runner, temp_db, "import", account_id, str(fixtures_dir / "sample.csv"))

    assert result.exit_code == 1
    assert "Only .qif files are accepted" in result.output


def test_import_error_listing_is_capped(cli_runner, temp_db, tmp_path):
    _, account_id = setup_account(cli_runner, temp_db)
    bad = "".join(f"D01/01/2024\nPNo amount {n}\n^\n" for n in range(25))
    good = "D02/01/2024\nT-1.00\nPGood\n^\n"
    qif_file = tmp_path / "noisy.qif"
    qif_file.write_text(bad + good)

    result = invoke(cli_runner, temp_db, "import", account_id, str(qif_file))

    assert result.exit_code == 0
    assert "Parse errors: 25" in result.output
    assert "Record 20: Missing amount" in result.output
    assert "Record 21: Missing amount" not in result.output
    assert "... and 5 more" in result.output


def test_parse_dry_run(cli_runner, temp_db, fixtures_dir):
    result = invoke(cli_runner, temp_db, "parse", str(fixtures_dir / "sample.qif"))

    assert result.exit_code == 0
    assert "TESCO STORES 2231" in result.output
    assert "3 entries, 0 errors" in result.output


def test_rules_and_transactions(cli_runner, temp_db):
    book_id, account_id = setup_account(cli_runner, temp_db)

    result = invoke(cli_runner, temp_db, "rule", "add", book_id, "AMAZON", "Shopping")
    assert result.exit_code == 0
    result = invoke(
        cli_runner, temp_db, "rule", "add", book_id, "AMAZON PRIME", "Subscriptions"
    )
    assert result.exit_code == 0

    result = invoke(cli_runner, temp_db, "rule", "match", book_id, "AMAZON PRIME VIDEO")
    assert result.output.strip() == "Shopping"

    result = invoke(
        cli_runner,
        temp_db,
        "transaction",
        "add",
        account_id,
        "--date",
        "15/01/2024",
        "--amount=-12.50",
        "--description",
        "AMAZON MARKETPLACE",
    )
    assert result.exit_code == 0

    result = invoke(cli_runner, temp_db, "transaction", "list", account_id)
    assert "2024-01-15" in result.output
    assert "-12.50" in result.output
    assert "Shopping" in result.output


def test_duplicate_rule_is_an_error(cli_runner, temp_db):
    book_id, _ = setup_account(cli_runner, temp_db)
    invoke(cli_runner, temp_db, "rule", "add", book_id, "tesco", "Groceries")

    result = invoke(cli_runner, temp_db, "rule", "add", book_id, "tesco", "Food")

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_recalculate_book(cli_runner, temp_db):
    book_id, _ = setup_account(cli_runner, temp_db)

    result = invoke(cli_runner, temp_db, "book", "recalculate", book_id)

    assert result.exit_code == 0
    assert "Total accounts: 1" in result.output
    assert "Failed: 0" in result.output


def test_unknown_account(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "account", "history", "999")

    assert result.exit_code == 1
    assert "Account 999 not found" in result.output


def test_import_storage_failure_is_reported(cli_runner, temp_db, fixtures_dir, monkeypatch):
    _, account_id = setup_account(cli_runner, temp_db)

    def unavailable(self, account_id, qif_file_path):
        raise StorageError("disk I/O error")

    monkeypatch.setattr(QIFImportService, "import_path", unavailable)

    result = invoke(cli_runner, temp_db, "import", account_id, str(fixtures_dir / "sample.qif"))

    assert result.exit_code == 1
    assert "Error: disk I/O error" in result.output
