"""Category rule matching and rule management.

Rules are evaluated in the order they were registered and the first rule
with a keyword contained in the description wins. A later, more specific
rule is never consulted once an earlier one matches: ordering is under the
user's control and is not re-ranked by specificity.
"""

import logging
from typing import Iterable, Optional

from ledgerbook.database.base import Database
from ledgerbook.domain.aggregation import AggregationService
from ledgerbook.domain.entities import CategoryRule
from ledgerbook.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_book_not_found,
    account_not_found,
    duplicate_rule_keyword,
    rule_not_found,
)
from ledgerbook.domain.locking import AccountLocks, default_account_locks

logger = logging.getLogger(__name__)


def match_rule(rules: Iterable[CategoryRule], description: str) -> Optional[CategoryRule]:
    """Return the first rule with a keyword found in the description.

    Matching is a case-insensitive substring test against each
    comma-separated keyword of each rule, in rule order.
    """
    haystack = (description or "").lower()
    for rule in rules:
        for keyword in rule.keywords():
            if keyword in haystack:
                return rule
    return None


def apply_rules(
    rules: Iterable[CategoryRule],
    description: str,
    category: str,
    sub_category: Optional[str],
) -> tuple[str, Optional[str]]:
    """Categorize a description, keeping the existing pair when nothing matches."""
    rule = match_rule(rules, description)
    if rule is None:
        return category, sub_category
    return rule.category, rule.sub_category or None


class RuleService:
    """Service for managing and applying category rules."""

    def __init__(self, db: Database, locks: Optional[AccountLocks] = None):
        """Initialize rule service.

        Args:
            db: Database instance
            locks: Account lock registry (defaults to the shared registry)
        """
        self.db = db
        self.locks = locks or default_account_locks
        self.aggregation_service = AggregationService(db, locks=self.locks)

    def match_category(
        self,
        account_book_id: int,
        description: str,
        existing_category: str,
        existing_subcategory: Optional[str] = None,
    ) -> tuple[str, Optional[str]]:
        """Resolve the category for a description using the book's rules.

        Never raises: if the rules cannot be loaded the existing category
        and sub category are returned unchanged.
        """
        try:
            rules = self.db.list_rules(account_book_id)
        except Exception:
            logger.warning(
                "Rule lookup failed for account book %s; leaving category unchanged",
                account_book_id,
                exc_info=True,
            )
            return existing_category, existing_subcategory
        return apply_rules(rules, description, existing_category, existing_subcategory)

    def list_rules(self, account_book_id: int) -> list[CategoryRule]:
        """List rules of an account book in evaluation order.

        Raises:
            NotFoundError: If the account book does not exist
        """
        self._require_book(account_book_id)
        return self.db.list_rules(account_book_id)

    def get_rule(self, account_book_id: int, rule_id: int) -> CategoryRule:
        """Get a rule, checking it belongs to the given account book.

        Raises:
            NotFoundError: If the rule does not exist in that book
        """
        rule = self.db.get_rule(rule_id)
        if rule is None or rule.account_book_id != account_book_id:
            raise NotFoundError(rule_not_found(rule_id))
        return rule

    def create_rule(
        self,
        account_book_id: int,
        keyword: str,
        category: str,
        sub_category: Optional[str] = None,
    ) -> int:
        """Create a rule at the end of the book's evaluation order.

        Returns:
            Rule ID

        Raises:
            ValidationError: If keyword or category is empty
            ConflictError: If the keyword is already used in this book
        """
        self._require_book(account_book_id)
        keyword, category, sub_category = self._clean(keyword, category, sub_category)
        self._check_duplicate(account_book_id, keyword)
        rule_id = self.db.create_rule(
            account_book_id=account_book_id,
            keyword=keyword,
            category=category,
            sub_category=sub_category,
        )
        logger.info("Created rule %s for account book %s", rule_id, account_book_id)
        return rule_id

    def update_rule(
        self,
        account_book_id: int,
        rule_id: int,
        keyword: str,
        category: str,
        sub_category: Optional[str] = None,
    ) -> None:
        """Edit a rule in place; its position in the evaluation order is kept."""
        self.get_rule(account_book_id, rule_id)
        keyword, category, sub_category = self._clean(keyword, category, sub_category)
        self._check_duplicate(account_book_id, keyword, exclude_rule_id=rule_id)
        self.db.update_rule(
            rule_id=rule_id, keyword=keyword, category=category, sub_category=sub_category
        )

    def delete_rule(self, account_book_id: int, rule_id: int) -> None:
        """Delete a rule."""
        self.get_rule(account_book_id, rule_id)
        self.db.delete_rule(rule_id)

    def apply_rules_to_account(self, account_id: int) -> int:
        """Re-categorize an account's existing transactions.

        Returns:
            Number of transactions whose category changed
        """
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        rules = self.db.list_rules(account.account_book_id)
        changed = 0
        with self.locks.hold(account_id):
            for txn in self.db.list_transactions(account_id):
                category, sub_category = apply_rules(
                    rules, txn.description, txn.category, txn.sub_category
                )
                if (category, sub_category) == (txn.category, txn.sub_category):
                    continue
                self.db.update_transaction(
                    txn.id,
                    category=category,
                    sub_category=sub_category,
                    update_sub_category=True,
                )
                changed += 1
            if changed:
                self.aggregation_service.recompute_account(account_id)

        logger.info("Re-categorized %d transactions in account %s", changed, account_id)
        return changed

    def _require_book(self, account_book_id: int) -> None:
        if self.db.get_account_book(account_book_id) is None:
            raise NotFoundError(account_book_not_found(account_book_id))

    def _clean(
        self, keyword: str, category: str, sub_category: Optional[str]
    ) -> tuple[str, str, Optional[str]]:
        keyword = (keyword or "").strip()
        category = (category or "").strip()
        if not keyword or not category:
            raise ValidationError("Missing required fields: keyword, category")
        sub_category = (sub_category or "").strip() or None
        return keyword, category, sub_category

    def _check_duplicate(
        self, account_book_id: int, keyword: str, exclude_rule_id: Optional[int] = None
    ) -> None:
        for rule in self.db.list_rules(account_book_id):
            if rule.id != exclude_rule_id and rule.keyword == keyword:
                raise ConflictError(duplicate_rule_keyword(keyword))
