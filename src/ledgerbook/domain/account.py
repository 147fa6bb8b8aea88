"""Account book and account domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.aggregation import AggregationService
from ledgerbook.domain.entities import (
    Account as AccountEntity,
    AccountBook as AccountBookEntity,
    LedgerEntry,
    ZERO,
)
from ledgerbook.domain.errors import (
    NotFoundError,
    ValidationError,
    account_book_not_found,
    account_not_found,
)
from ledgerbook.domain.locking import AccountLocks, default_account_locks
from ledgerbook.utils.amount_parser import quantize_amount

logger = logging.getLogger(__name__)

STARTING_BALANCE_DESCRIPTION = "Starting Balance"
OPENING_BALANCE_CATEGORY = "Opening Balance"


class AccountService:
    """Service for managing account books and accounts."""

    def __init__(self, db: Database, locks: Optional[AccountLocks] = None):
        """Initialize account service.

        Args:
            db: Database instance
            locks: Account lock registry (defaults to the shared registry)
        """
        self.db = db
        self.locks = locks or default_account_locks
        self.aggregation_service = AggregationService(db, locks=self.locks)

    def create_account_book(self, name: str) -> int:
        """Create a new account book.

        Args:
            name: Account book name

        Returns:
            Account book ID

        Raises:
            ValidationError: If the name is empty
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account book name is required")
        return self.db.create_account_book(name=name)

    def get_account_book(self, account_book_id: int) -> Optional[AccountBookEntity]:
        """Get account book by ID."""
        return self.db.get_account_book(account_book_id)

    def list_account_books(self) -> list[AccountBookEntity]:
        """List all account books."""
        return self.db.list_account_books()

    def create_account(
        self,
        account_book_id: int,
        name: str,
        starting_balance: Optional[Decimal] = None,
    ) -> int:
        """Create a new account in an account book.

        A nonzero starting balance is recorded as an opening transaction dated
        today, and the account's aggregates are computed right away.

        Args:
            account_book_id: Owning account book ID
            name: Account name
            starting_balance: Optional opening balance (negative for overdrawn)

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty or the starting balance is out of range
            NotFoundError: If the account book doesn't exist
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required")
        if self.db.get_account_book(account_book_id) is None:
            raise NotFoundError(account_book_not_found(account_book_id))

        amount = ZERO
        if starting_balance is not None:
            try:
                amount = quantize_amount(Decimal(starting_balance))
            except ValueError as e:
                raise ValidationError(f"Starting balance is invalid: {e}")

        account_id = self.db.create_account(account_book_id=account_book_id, name=name)

        if amount != 0:
            entry = LedgerEntry(
                transaction_date=date.today(),
                description=STARTING_BALANCE_DESCRIPTION,
                category=OPENING_BALANCE_CATEGORY,
                debit_amount=ZERO if amount > 0 else abs(amount),
                credit_amount=amount if amount > 0 else ZERO,
            )
            with self.locks.hold(account_id):
                self.db.insert_transaction(account_id, entry)
                self.aggregation_service.recompute_account(account_id)
            logger.info("Opened account %s with starting balance %s", account_id, amount)

        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID."""
        return self.db.get_account(account_id)

    def list_accounts(self, account_book_id: int) -> list[AccountEntity]:
        """List the accounts of an account book.

        Raises:
            NotFoundError: If the account book doesn't exist
        """
        if self.db.get_account_book(account_book_id) is None:
            raise NotFoundError(account_book_not_found(account_book_id))
        return self.db.list_accounts(account_book_id)

    def delete_account(self, account_id: int) -> None:
        """Delete an account and all of its transactions.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        with self.locks.hold(account_id):
            self.db.delete_account(account_id)

    def list_categories(self, account_book_id: int) -> dict[str, list[str]]:
        """Categories used in an account book with their sorted subcategories.

        Raises:
            NotFoundError: If the account book doesn't exist
        """
        if self.db.get_account_book(account_book_id) is None:
            raise NotFoundError(account_book_not_found(account_book_id))

        categories: dict[str, set[str]] = {}
        for category, sub_category in self.db.list_categories(account_book_id):
            subs = categories.setdefault(category, set())
            if sub_category:
                subs.add(sub_category)
        return {category: sorted(subs) for category, subs in sorted(categories.items())}
