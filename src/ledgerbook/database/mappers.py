"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the translation of the
JSON-encoded historical balance series into ``MonthlySnapshot`` values.
"""

from decimal import Decimal

from ledgerbook.domain import entities as domain
from ledgerbook.database.models import (
    AccountBook as ORMAccountBook,
    Account as ORMAccount,
    Transaction as ORMTransaction,
    CategoryRule as ORMCategoryRule,
)
from ledgerbook.utils.amount_parser import quantize_amount


def _amount(value) -> Decimal:
    """Normalize a stored numeric value to a two-place Decimal."""
    if value is None:
        return domain.ZERO
    return quantize_amount(Decimal(str(value)))


def account_book_to_domain(orm_book: ORMAccountBook) -> domain.AccountBook:
    """Convert SQLAlchemy AccountBook model to domain AccountBook entity."""
    return domain.AccountBook(
        id=orm_book.id,
        name=orm_book.name,
        created_at=orm_book.created_at,
        updated_at=orm_book.updated_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        account_book_id=orm_account.account_book_id,
        name=orm_account.name,
        total_monthly_balance=_amount(orm_account.total_monthly_balance),
        total_monthly_debits=_amount(orm_account.total_monthly_debits),
        total_monthly_credits=_amount(orm_account.total_monthly_credits),
        historical_balance=history_to_domain(orm_account.historical_balance),
        created_at=orm_account.created_at,
        updated_at=orm_account.updated_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        account_book_id=orm_transaction.account_book_id,
        transaction_date=orm_transaction.transaction_date,
        description=orm_transaction.description,
        category=orm_transaction.category,
        sub_category=orm_transaction.sub_category,
        debit_amount=_amount(orm_transaction.debit_amount),
        credit_amount=_amount(orm_transaction.credit_amount),
        memo=orm_transaction.memo,
        linked_transaction_id=orm_transaction.linked_transaction_id,
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
    )


def rule_to_domain(orm_rule: ORMCategoryRule) -> domain.CategoryRule:
    """Convert SQLAlchemy CategoryRule model to domain CategoryRule entity."""
    return domain.CategoryRule(
        id=orm_rule.id,
        account_book_id=orm_rule.account_book_id,
        keyword=orm_rule.keyword,
        category=orm_rule.category,
        sub_category=orm_rule.sub_category,
        created_at=orm_rule.created_at,
        updated_at=orm_rule.updated_at,
    )


def history_to_domain(raw_history) -> tuple[domain.MonthlySnapshot, ...]:
    """Decode the stored JSON series into snapshots."""
    return tuple(domain.MonthlySnapshot.from_dict(item) for item in raw_history or [])


def history_to_storage(history: tuple[domain.MonthlySnapshot, ...]) -> list[dict[str, str]]:
    """Encode snapshots as JSON-safe dicts with decimal strings."""
    return [snapshot.to_dict() for snapshot in history]
