"""SQLAlchemy models for ledgerbook database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    JSON,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccountBook(Base):
    """Account book model."""

    __tablename__ = "account_books"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="account_book", cascade="all, delete-orphan")
    rules = relationship("CategoryRule", back_populates="account_book", cascade="all, delete-orphan")


class Account(Base):
    """Account model with cached aggregates."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    account_book_id = Column(Integer, ForeignKey("account_books.id"), nullable=False)
    name = Column(String, nullable=False)
    total_monthly_balance = Column(Numeric(12, 2), default=0, nullable=False)
    total_monthly_debits = Column(Numeric(12, 2), default=0, nullable=False)
    total_monthly_credits = Column(Numeric(12, 2), default=0, nullable=False)
    # List of {"month", "debits", "credits", "balance"} with decimal strings
    historical_balance = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    account_book = relationship("AccountBook", back_populates="accounts")
    transactions = relationship(
        "Transaction",
        back_populates="account",
        cascade="all, delete-orphan",
        foreign_keys="Transaction.account_id",
    )


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    account_book_id = Column(Integer, ForeignKey("account_books.id"), nullable=False)
    transaction_date = Column(Date, nullable=False)
    description = Column(String, nullable=False)
    category = Column(String, nullable=False)
    sub_category = Column(String, nullable=True)
    debit_amount = Column(Numeric(12, 2), default=0, nullable=False)
    credit_amount = Column(Numeric(12, 2), default=0, nullable=False)
    memo = Column(String, nullable=True)
    linked_transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions", foreign_keys=[account_id])


class CategoryRule(Base):
    """Keyword categorization rule model."""

    __tablename__ = "category_rules"

    id = Column(Integer, primary_key=True)
    account_book_id = Column(Integer, ForeignKey("account_books.id"), nullable=False)
    keyword = Column(String, nullable=False)
    category = Column(String, nullable=False)
    sub_category = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    # Relationships
    account_book = relationship("AccountBook", back_populates="rules")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory.

    SQLite connections are shared across threads by the pool and wait for
    the write lock instead of failing immediately.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
