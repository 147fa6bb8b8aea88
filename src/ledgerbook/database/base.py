"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerbook.domain.entities import (
    Account,
    AccountBook,
    CategoryRule,
    LedgerEntry,
    MonthlySnapshot,
    PeriodTotals,
    Transaction,
)


class Database(ABC):
    """Abstract database interface for ledgerbook.

    Write operations raise ``StorageError`` when the underlying store fails.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account book operations
    @abstractmethod
    def create_account_book(self, name: str) -> int:
        """Create an account book. Returns account book ID."""
        pass

    @abstractmethod
    def get_account_book(self, account_book_id: int) -> Optional[AccountBook]:
        """Get account book by ID."""
        pass

    @abstractmethod
    def list_account_books(self) -> list[AccountBook]:
        """List all account books."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, account_book_id: int, name: str) -> int:
        """Create an account with zeroed aggregates. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, account_book_id: Optional[int] = None) -> list[Account]:
        """List accounts, optionally restricted to one account book."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account together with its transactions."""
        pass

    @abstractmethod
    def write_account_aggregates(
        self,
        account_id: int,
        current: PeriodTotals,
        history: tuple[MonthlySnapshot, ...],
    ) -> None:
        """Replace the cached aggregates of an account."""
        pass

    # Transaction operations
    @abstractmethod
    def insert_transaction(self, account_id: int, entry: LedgerEntry) -> int:
        """Persist a ledger entry for an account. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Transaction]:
        """List an account's transactions, optionally within a date range.

        Both bounds are inclusive. Results are ordered by date then ID.
        """
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        account_id: Optional[int] = None,
        transaction_date: Optional[date] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        sub_category: Optional[str] = None,
        debit_amount: Optional[Decimal] = None,
        credit_amount: Optional[Decimal] = None,
        memo: Optional[str] = None,
        linked_transaction_id: Optional[int] = None,
        update_sub_category: bool = False,
    ) -> None:
        """Update transaction fields.

        Args:
            update_sub_category: If True, write sub_category even if it is None
        """
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction."""
        pass

    @abstractmethod
    def list_categories(self, account_book_id: int) -> list[tuple[str, Optional[str]]]:
        """Distinct (category, sub_category) pairs used in an account book."""
        pass

    # Category rule operations
    @abstractmethod
    def create_rule(
        self,
        account_book_id: int,
        keyword: str,
        category: str,
        sub_category: Optional[str] = None,
    ) -> int:
        """Create a category rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: int) -> Optional[CategoryRule]:
        """Get category rule by ID."""
        pass

    @abstractmethod
    def list_rules(self, account_book_id: int) -> list[CategoryRule]:
        """List an account book's rules in creation order."""
        pass

    @abstractmethod
    def update_rule(
        self,
        rule_id: int,
        keyword: str,
        category: str,
        sub_category: Optional[str] = None,
    ) -> None:
        """Replace a rule's keyword, category and sub category."""
        pass

    @abstractmethod
    def delete_rule(self, rule_id: int) -> None:
        """Delete a category rule."""
        pass
