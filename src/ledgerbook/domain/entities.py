"""Domain model entities for ledgerbook.

These are pure data classes representing business concepts, independent of
database schema. Amounts are always ``Decimal`` values with two decimal
places; nothing in the domain layer carries binary floating point amounts.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional

UNCATEGORIZED = "Uncategorized"

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class AccountBook:
    """Top-level grouping of accounts and shared category rules."""

    id: int
    name: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class MonthlySnapshot:
    """One month of the historical balance series.

    ``debits`` and ``credits`` are local to the month; ``balance`` is the
    cumulative balance as of the month's last day.
    """

    month: str
    debits: Decimal
    credits: Decimal
    balance: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "month": self.month,
            "debits": str(self.debits),
            "credits": str(self.credits),
            "balance": str(self.balance),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MonthlySnapshot":
        return cls(
            month=data["month"],
            debits=Decimal(str(data.get("debits", "0.00"))),
            credits=Decimal(str(data.get("credits", "0.00"))),
            balance=Decimal(str(data.get("balance", "0.00"))),
        )


@dataclass(frozen=True)
class PeriodTotals:
    """Debit/credit totals for the current calendar month."""

    debits: Decimal = ZERO
    credits: Decimal = ZERO
    balance: Decimal = ZERO


@dataclass(frozen=True)
class AccountAggregates:
    """Derived state of an account: current month plus rolling history."""

    current: PeriodTotals
    history: tuple[MonthlySnapshot, ...]


@dataclass(frozen=True)
class Account:
    """Account domain entity holding its cached aggregates."""

    id: int
    account_book_id: int
    name: str
    total_monthly_balance: Decimal
    total_monthly_debits: Decimal
    total_monthly_credits: Decimal
    historical_balance: tuple[MonthlySnapshot, ...]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Persisted transaction domain entity."""

    id: int
    account_id: int
    account_book_id: int
    transaction_date: date
    description: str
    category: str
    sub_category: Optional[str]
    debit_amount: Decimal
    credit_amount: Decimal
    memo: Optional[str]
    linked_transaction_id: Optional[int]
    created_at: datetime
    updated_at: datetime

    @property
    def signed_amount(self) -> Decimal:
        """Credit minus debit."""
        return self.credit_amount - self.debit_amount


@dataclass(frozen=True)
class CategoryRule:
    """Keyword rule mapping descriptions to a category."""

    id: int
    account_book_id: int
    keyword: str
    category: str
    sub_category: Optional[str]
    created_at: datetime
    updated_at: datetime

    def keywords(self) -> list[str]:
        """Return the non-empty, lowercased keyword tokens of this rule."""
        tokens = (token.strip().lower() for token in self.keyword.split(","))
        return [token for token in tokens if token]


@dataclass(frozen=True)
class LedgerEntry:
    """A parsed candidate transaction prior to persistence."""

    transaction_date: date
    description: str
    debit_amount: Decimal
    credit_amount: Decimal
    category: str = UNCATEGORIZED
    sub_category: Optional[str] = None
    memo: Optional[str] = None


@dataclass
class ParseResult:
    """Entries extracted from an interchange file plus structural errors."""

    entries: list[LedgerEntry] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ImportResult:
    """Summary of a file import.

    ``errors`` holds parse errors first, then persistence errors, each group
    in the order encountered.
    """

    imported: int
    failed: int
    parse_errors: int
    errors: tuple[str, ...] = ()
