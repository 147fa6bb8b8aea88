"""QIF import domain service."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.aggregation import AggregationService
from ledgerbook.domain.entities import CategoryRule, ImportResult
from ledgerbook.domain.errors import (
    ImportRejectedError,
    NotFoundError,
    StorageError,
    ValidationError,
    account_not_found,
    import_rejected,
)
from ledgerbook.domain.locking import AccountLocks, default_account_locks
from ledgerbook.domain.qif_parser import parse_interchange_file
from ledgerbook.domain.rules import apply_rules

logger = logging.getLogger(__name__)

ACCEPTED_EXTENSION = ".qif"


class QIFImportService:
    """Service for importing QIF files into an account."""

    def __init__(self, db: Database, locks: Optional[AccountLocks] = None):
        """Initialize QIF import service.

        Args:
            db: Database instance
            locks: Account lock registry (defaults to the shared registry)
        """
        self.db = db
        self.locks = locks or default_account_locks
        self.aggregation_service = AggregationService(db, locks=self.locks)

    def import_path(self, account_id: int, qif_file_path: str) -> ImportResult:
        """Import a QIF file from disk.

        Raises:
            ValidationError: If the file does not have a .qif extension
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(qif_file_path)
        if path.suffix.lower() != ACCEPTED_EXTENSION:
            raise ValidationError(f"Only {ACCEPTED_EXTENSION} files are accepted: {path.name}")
        if not path.exists():
            raise FileNotFoundError(f"QIF file not found: {qif_file_path}")
        return self.import_file(account_id, path.read_bytes())

    def import_file(self, account_id: int, content: bytes | str) -> ImportResult:
        """Import the content of a QIF file into an account.

        Malformed records and entries that fail to persist are reported in
        the result rather than raised. Aggregates are recomputed once at the
        end if anything was written; a storage failure there is reported too.

        Args:
            account_id: Target account ID
            content: Raw file content

        Returns:
            ImportResult with imported/failed/parse error counts and the
            ordered error messages

        Raises:
            NotFoundError: If the account doesn't exist
            ImportRejectedError: If the file yields no entries but has
                structural errors; nothing is written in that case
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        parsed = parse_interchange_file(content)
        if not parsed.entries and parsed.errors:
            logger.warning(
                "Rejected import into account %s: %d parse errors and no valid records",
                account_id,
                len(parsed.errors),
            )
            raise ImportRejectedError(import_rejected(len(parsed.errors)), parsed.errors)

        rules = self._load_rules(account.account_book_id)

        imported = 0
        failed = 0
        persistence_errors = []
        with self.locks.hold(account_id):
            for entry in parsed.entries:
                category, sub_category = apply_rules(
                    rules, entry.description, entry.category, entry.sub_category
                )
                entry = replace(entry, category=category, sub_category=sub_category)
                try:
                    self.db.insert_transaction(account_id, entry)
                    imported += 1
                except Exception as e:
                    failed += 1
                    persistence_errors.append(f"Failed to import '{entry.description}': {e}")
                    logger.warning(
                        "Failed to persist entry '%s' into account %s: %s",
                        entry.description,
                        account_id,
                        e,
                    )

            if imported:
                try:
                    self.aggregation_service.recompute_account(account_id)
                except StorageError as e:
                    persistence_errors.append(f"Failed to recompute account {account_id}: {e}")
                    logger.exception("Failed to recompute account %s after import", account_id)

        logger.info(
            "Imported %d entries into account %s (%d failed, %d parse errors)",
            imported,
            account_id,
            failed,
            len(parsed.errors),
        )
        return ImportResult(
            imported=imported,
            failed=failed,
            parse_errors=len(parsed.errors),
            errors=tuple(parsed.errors) + tuple(persistence_errors),
        )

    def _load_rules(self, account_book_id: int) -> list[CategoryRule]:
        """Load categorization rules; a failed lookup disables categorization."""
        try:
            return self.db.list_rules(account_book_id)
        except Exception:
            logger.warning(
                "Rule lookup failed for account book %s; importing without categorization",
                account_book_id,
                exc_info=True,
            )
            return []
