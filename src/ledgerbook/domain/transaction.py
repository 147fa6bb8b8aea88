"""Transaction domain service.

Every mutation holds the affected account's lock and recomputes that
account's aggregates before returning.
"""

from typing import Optional
from datetime import date
from decimal import Decimal

from ledgerbook.database.base import Database
from ledgerbook.domain.aggregation import AggregationService
from ledgerbook.domain.entities import (
    LedgerEntry,
    Transaction as TransactionEntity,
    UNCATEGORIZED,
    ZERO,
)
from ledgerbook.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    transaction_not_found,
)
from ledgerbook.domain.locking import AccountLocks, default_account_locks
from ledgerbook.domain.rules import RuleService
from ledgerbook.utils.amount_parser import quantize_amount


def _clean_amount(amount: Optional[Decimal], field_name: str) -> Optional[Decimal]:
    if amount is None:
        return None
    try:
        amount = quantize_amount(Decimal(amount))
    except ValueError as e:
        raise ValidationError(f"{field_name} is invalid: {e}")
    if amount < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return amount


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database, locks: Optional[AccountLocks] = None):
        """Initialize transaction service.

        Args:
            db: Database instance
            locks: Account lock registry (defaults to the shared registry)
        """
        self.db = db
        self.locks = locks or default_account_locks
        self.aggregation_service = AggregationService(db, locks=self.locks)
        self.rule_service = RuleService(db, locks=self.locks)

    def create_transaction(
        self,
        account_id: int,
        transaction_date: date,
        description: str,
        debit_amount: Decimal = ZERO,
        credit_amount: Decimal = ZERO,
        category: Optional[str] = None,
        sub_category: Optional[str] = None,
        memo: Optional[str] = None,
        apply_rules: bool = True,
    ) -> int:
        """Create a transaction.

        Args:
            account_id: Account ID
            transaction_date: Transaction date
            description: Description (required)
            debit_amount: Money out, non-negative
            credit_amount: Money in, non-negative
            category: Optional category (defaults to Uncategorized)
            sub_category: Optional sub category
            memo: Optional memo
            apply_rules: If True, the account book's rules may override the category

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the account doesn't exist
            ValidationError: If the description is empty or an amount is negative
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        description = (description or "").strip()
        if not description:
            raise ValidationError("Transaction description is required")

        category = (category or "").strip() or UNCATEGORIZED
        sub_category = (sub_category or "").strip() or None
        if apply_rules:
            category, sub_category = self.rule_service.match_category(
                account.account_book_id, description, category, sub_category
            )

        entry = LedgerEntry(
            transaction_date=transaction_date,
            description=description,
            debit_amount=_clean_amount(debit_amount, "Debit amount"),
            credit_amount=_clean_amount(credit_amount, "Credit amount"),
            category=category,
            sub_category=sub_category,
            memo=memo,
        )
        with self.locks.hold(account_id):
            transaction_id = self.db.insert_transaction(account_id, entry)
            self.aggregation_service.recompute_account(account_id)
        return transaction_id

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def update_transaction(
        self,
        transaction_id: int,
        account_id: Optional[int] = None,
        transaction_date: Optional[date] = None,
        description: Optional[str] = None,
        debit_amount: Optional[Decimal] = None,
        credit_amount: Optional[Decimal] = None,
        category: Optional[str] = None,
        sub_category: Optional[str] = None,
        memo: Optional[str] = None,
        linked_transaction_id: Optional[int] = None,
        clear_sub_category: bool = False,
    ) -> None:
        """Update transaction fields.

        Moving a transaction to another account recomputes both accounts.

        Args:
            transaction_id: Transaction ID to update
            account_id: Optional new account ID
            transaction_date: Optional new date
            description: Optional new description
            debit_amount: Optional new debit amount
            credit_amount: Optional new credit amount
            category: Optional new category
            sub_category: Optional new sub category
            memo: Optional new memo
            linked_transaction_id: Optional cross-reference to another transaction
            clear_sub_category: If True, clear the sub category

        Raises:
            NotFoundError: If the transaction, target account or linked
                transaction doesn't exist
            ValidationError: On empty description/category or negative amounts
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        if account_id is not None and self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        if linked_transaction_id is not None and self.db.get_transaction(linked_transaction_id) is None:
            raise NotFoundError(transaction_not_found(linked_transaction_id))

        if description is not None:
            description = description.strip()
            if not description:
                raise ValidationError("Transaction description is required")
        if category is not None:
            category = category.strip()
            if not category:
                raise ValidationError("Category must not be empty")
        if clear_sub_category:
            if sub_category is not None:
                raise ValidationError("Cannot set both sub_category and clear_sub_category")

        affected = {txn.account_id}
        if account_id is not None:
            affected.add(account_id)

        with self.locks.hold(*affected):
            self.db.update_transaction(
                transaction_id=transaction_id,
                account_id=account_id,
                transaction_date=transaction_date,
                description=description,
                category=category,
                sub_category=sub_category,
                debit_amount=_clean_amount(debit_amount, "Debit amount"),
                credit_amount=_clean_amount(credit_amount, "Credit amount"),
                memo=memo,
                linked_transaction_id=linked_transaction_id,
                update_sub_category=clear_sub_category,
            )
            for affected_id in sorted(affected):
                self.aggregation_service.recompute_account(affected_id)

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction.

        Args:
            transaction_id: Transaction ID to delete

        Raises:
            NotFoundError: If transaction doesn't exist
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        with self.locks.hold(txn.account_id):
            self.db.delete_transaction(transaction_id)
            self.aggregation_service.recompute_account(txn.account_id)

    def bulk_delete_transactions(self, account_id: int, transaction_ids: list[int]) -> int:
        """Delete several transactions of one account with a single recompute.

        IDs that don't exist or belong to another account are skipped.

        Returns:
            Number of transactions deleted
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        deleted = 0
        with self.locks.hold(account_id):
            for transaction_id in transaction_ids:
                txn = self.db.get_transaction(transaction_id)
                if txn is None or txn.account_id != account_id:
                    continue
                self.db.delete_transaction(transaction_id)
                deleted += 1
            if deleted:
                self.aggregation_service.recompute_account(account_id)
        return deleted

    def list_transactions(
        self,
        account_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[TransactionEntity]:
        """List an account's transactions, oldest first.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        return self.db.list_transactions(account_id, start_date=start_date, end_date=end_date)
