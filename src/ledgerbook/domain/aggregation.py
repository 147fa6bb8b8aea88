"""Aggregation engine for account balances.

Aggregates are a cache derived from an account's full transaction set.
They are never updated incrementally: every recompute rescans the account.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.entities import (
    AccountAggregates,
    MonthlySnapshot,
    PeriodTotals,
    Transaction,
    ZERO,
)
from ledgerbook.domain.errors import NotFoundError, account_book_not_found, account_not_found
from ledgerbook.domain.locking import AccountLocks, default_account_locks
from ledgerbook.utils.amount_parser import quantize_amount
from ledgerbook.utils.date_parser import month_end, month_key, month_start, month_window

logger = logging.getLogger(__name__)

HISTORY_MONTHS = 24


def compute_aggregates(
    transactions: Iterable[Transaction],
    today: date,
    months: int = HISTORY_MONTHS,
) -> AccountAggregates:
    """Compute current-month totals and the rolling monthly series.

    Args:
        transactions: All transactions of one account
        today: Reference date; the series ends with this date's month
        months: Length of the series

    Returns:
        AccountAggregates whose history has exactly ``months`` entries,
        oldest first
    """
    window = month_window(today, months)
    window_start = window[0]
    window_end = month_end(today)

    opening_credits = ZERO
    opening_debits = ZERO
    monthly_debits: dict[date, Decimal] = defaultdict(lambda: ZERO)
    monthly_credits: dict[date, Decimal] = defaultdict(lambda: ZERO)

    for txn in transactions:
        if txn.transaction_date > window_end:
            continue
        if txn.transaction_date < window_start:
            opening_credits += txn.credit_amount
            opening_debits += txn.debit_amount
            continue
        bucket = month_start(txn.transaction_date)
        monthly_debits[bucket] += txn.debit_amount
        monthly_credits[bucket] += txn.credit_amount

    balance = quantize_amount(opening_credits - opening_debits)
    history = []
    for start in window:
        debits = quantize_amount(monthly_debits[start])
        credits = quantize_amount(monthly_credits[start])
        balance = quantize_amount(balance + credits - debits)
        history.append(
            MonthlySnapshot(month=month_key(start), debits=debits, credits=credits, balance=balance)
        )

    latest = history[-1]
    current = PeriodTotals(
        debits=latest.debits,
        credits=latest.credits,
        balance=quantize_amount(latest.credits - latest.debits),
    )
    return AccountAggregates(current=current, history=tuple(history))


class AggregationService:
    """Service recomputing and reading account aggregates."""

    def __init__(self, db: Database, locks: Optional[AccountLocks] = None):
        """Initialize aggregation service.

        Args:
            db: Database instance
            locks: Account lock registry (defaults to the shared registry)
        """
        self.db = db
        self.locks = locks or default_account_locks

    def recompute_account(self, account_id: int, today: Optional[date] = None) -> AccountAggregates:
        """Rescan an account's transactions and store fresh aggregates.

        Args:
            account_id: Account ID
            today: Reference date (defaults to the current date)

        Returns:
            The aggregates that were written

        Raises:
            NotFoundError: If the account does not exist
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        today = today or date.today()
        with self.locks.hold(account_id):
            transactions = self.db.list_transactions(account_id, end_date=month_end(today))
            aggregates = compute_aggregates(transactions, today)
            self.db.write_account_aggregates(account_id, aggregates.current, aggregates.history)

        logger.info(
            "Recomputed account %s from %d transactions (balance %s)",
            account_id,
            len(transactions),
            aggregates.history[-1].balance,
        )
        return aggregates

    def recompute_account_book(self, account_book_id: int, today: Optional[date] = None) -> dict[str, int]:
        """Recompute every account of an account book.

        A failing account is logged and counted; the rest still run.

        Returns:
            Dict with ``total``, ``successful`` and ``failed`` counts
        """
        if self.db.get_account_book(account_book_id) is None:
            raise NotFoundError(account_book_not_found(account_book_id))

        accounts = self.db.list_accounts(account_book_id)
        successful = 0
        failed = 0
        for account in accounts:
            try:
                self.recompute_account(account.id, today=today)
                successful += 1
            except Exception:
                failed += 1
                logger.exception("Failed to recompute account %s", account.id)

        logger.info(
            "Recomputed account book %s: %d successful, %d failed",
            account_book_id,
            successful,
            failed,
        )
        return {"total": len(accounts), "successful": successful, "failed": failed}

    def get_balance_history(self, account_id: int) -> tuple[MonthlySnapshot, ...]:
        """Return the stored monthly series of an account."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account.historical_balance

    def get_dashboard(
        self, account_book_id: int, months: int = 6, recent: int = 5
    ) -> list[dict[str, Any]]:
        """Summarize each account of a book for an overview screen.

        Returns:
            One dict per account with ``account``, ``history`` (the last
            ``months`` stored snapshots) and ``recent_transactions`` (up to
            ``recent`` newest first)
        """
        if self.db.get_account_book(account_book_id) is None:
            raise NotFoundError(account_book_not_found(account_book_id))

        dashboard = []
        for account in self.db.list_accounts(account_book_id):
            transactions = self.db.list_transactions(account.id)
            newest_first = sorted(
                transactions, key=lambda t: (t.transaction_date, t.id), reverse=True
            )
            dashboard.append(
                {
                    "account": account,
                    "history": account.historical_balance[-months:],
                    "recent_transactions": newest_first[:recent],
                }
            )
        return dashboard
