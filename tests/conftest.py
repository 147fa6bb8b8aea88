"""Shared pytest fixtures for ledgerbook tests."""

import tempfile
import os
from datetime import date
from pathlib import Path
import pytest

from ledgerbook.database.factories import create_sqlite_database
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.aggregation import AggregationService
from ledgerbook.domain.locking import AccountLocks
from ledgerbook.domain.qif_import import QIFImportService
from ledgerbook.domain.rules import RuleService
from ledgerbook.domain.transaction import TransactionService
from ledgerbook.utils.date_parser import month_start


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_locks():
    """A lock registry private to one test."""
    return AccountLocks()


@pytest.fixture
def account_service(temp_db, account_locks):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, locks=account_locks)


@pytest.fixture
def aggregation_service(temp_db, account_locks):
    """Create an AggregationService with a temporary database."""
    return AggregationService(temp_db, locks=account_locks)


@pytest.fixture
def rule_service(temp_db, account_locks):
    """Create a RuleService with a temporary database."""
    return RuleService(temp_db, locks=account_locks)


@pytest.fixture
def transaction_service(temp_db, account_locks):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db, locks=account_locks)


@pytest.fixture
def import_service(temp_db, account_locks):
    """Create a QIFImportService with a temporary database."""
    return QIFImportService(temp_db, locks=account_locks)


@pytest.fixture
def sample_book(account_service):
    """Create a sample account book for testing."""
    book_id = account_service.create_account_book("Household")
    return account_service.get_account_book(book_id)


@pytest.fixture
def sample_account(account_service, sample_book):
    """Create a sample account for testing."""
    account_id = account_service.create_account(sample_book.id, "Checking")
    return account_service.get_account(account_id)


@pytest.fixture
def this_month():
    """First day of the current month."""
    return month_start(date.today())


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
