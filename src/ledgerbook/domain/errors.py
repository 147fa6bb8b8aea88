"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ImportRejectedError(ValidationError):
    """An interchange file yielded no usable entries at all.

    Attributes:
        errors: Structural parse errors collected while reading the file
    """

    def __init__(self, message: str, errors: list[str]):
        super().__init__(message)
        self.errors = list(errors)


class StorageError(Exception):
    """Persistence layer failure for a single storage operation."""


def account_book_not_found(account_book_id: int) -> str:
    """Return message for missing account book."""
    return f"Account book {account_book_id} not found"


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def rule_not_found(rule_id: int) -> str:
    """Return message for missing category rule."""
    return f"Rule {rule_id} not found"


def duplicate_rule_keyword(keyword: str) -> str:
    """Return message for a keyword already used by another rule in the book."""
    return f"A rule with keyword '{keyword}' already exists"


def import_rejected(error_count: int) -> str:
    """Return message when an import produced no usable entries."""
    return (
        f"Import rejected: no valid transactions found "
        f"({error_count} parse error{'s' if error_count != 1 else ''})"
    )
