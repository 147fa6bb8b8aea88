"""Tests for category rule matching and rule management."""

from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from ledgerbook.domain.entities import CategoryRule, UNCATEGORIZED
from ledgerbook.domain.errors import ConflictError, NotFoundError, ValidationError
from ledgerbook.domain.rules import RuleService, apply_rules, match_rule


def make_rule(rule_id: int, keyword: str, category: str, sub_category=None) -> CategoryRule:
    now = datetime.now(UTC)
    return CategoryRule(
        id=rule_id,
        account_book_id=1,
        keyword=keyword,
        category=category,
        sub_category=sub_category,
        created_at=now,
        updated_at=now,
    )


class TestMatchRule:
    """Pure first-match semantics."""

    def test_first_registered_rule_wins_over_more_specific_rule(self):
        rules = [
            make_rule(1, "AMAZON", "Shopping"),
            make_rule(2, "AMAZON PRIME", "Subscriptions"),
        ]

        rule = match_rule(rules, "AMAZON PRIME VIDEO")

        assert rule.category == "Shopping"

    def test_order_decides_when_reversed(self):
        rules = [
            make_rule(1, "AMAZON PRIME", "Subscriptions"),
            make_rule(2, "AMAZON", "Shopping"),
        ]

        assert match_rule(rules, "AMAZON PRIME VIDEO").category == "Subscriptions"
        assert match_rule(rules, "AMAZON MARKETPLACE").category == "Shopping"

    def test_case_insensitive_substring(self):
        rules = [make_rule(1, "Tesco", "Groceries")]

        assert match_rule(rules, "card payment TESCO STORES 2231").id == 1

    def test_comma_separated_keywords_are_trimmed(self):
        rules = [make_rule(1, " netflix ,  SPOTIFY,", "Subscriptions")]

        assert match_rule(rules, "Spotify AB").id == 1
        assert match_rule(rules, "NETFLIX.COM").id == 1

    def test_empty_keyword_tokens_never_match(self):
        rules = [make_rule(1, ", ,", "Everything")]

        assert match_rule(rules, "anything at all") is None

    def test_no_match(self):
        rules = [make_rule(1, "tesco", "Groceries")]

        assert match_rule(rules, "Shell petrol") is None
        assert match_rule([], "Shell petrol") is None

    def test_apply_rules_keeps_existing_pair_without_match(self):
        rules = [make_rule(1, "tesco", "Groceries")]

        assert apply_rules(rules, "Shell", "Fuel", "Car") == ("Fuel", "Car")

    def test_apply_rules_replaces_both_fields(self):
        rules = [make_rule(1, "tesco", "Groceries")]

        assert apply_rules(rules, "TESCO", "Fuel", "Car") == ("Groceries", None)

    def test_matching_does_not_mutate_rules(self):
        rule = make_rule(1, "Tesco, Lidl", "Groceries")

        match_rule([rule], "LIDL")

        assert rule.keyword == "Tesco, Lidl"


class TestRuleService:
    """Rule management against the database."""

    def test_match_category_uses_creation_order(self, rule_service, sample_book):
        rule_service.create_rule(sample_book.id, "AMAZON", "Shopping")
        rule_service.create_rule(sample_book.id, "AMAZON PRIME", "Subscriptions", "Video")

        result = rule_service.match_category(
            sample_book.id, "AMAZON PRIME VIDEO", UNCATEGORIZED, None
        )

        assert result == ("Shopping", None)

    def test_match_category_without_match(self, rule_service, sample_book):
        rule_service.create_rule(sample_book.id, "tesco", "Groceries")

        result = rule_service.match_category(sample_book.id, "Shell", "Fuel", "Car")

        assert result == ("Fuel", "Car")

    def test_match_category_swallows_lookup_failures(self, temp_db, sample_book, monkeypatch):
        service = RuleService(temp_db)

        def broken(account_book_id):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(temp_db, "list_rules", broken)

        result = service.match_category(sample_book.id, "TESCO", "Fuel", None)

        assert result == ("Fuel", None)

    def test_rules_are_scoped_to_their_book(self, rule_service, account_service, sample_book):
        other_book = account_service.create_account_book("Business")
        rule_service.create_rule(other_book, "tesco", "Office supplies")

        result = rule_service.match_category(sample_book.id, "TESCO", UNCATEGORIZED, None)

        assert result == (UNCATEGORIZED, None)

    def test_create_rule_strips_fields(self, rule_service, sample_book):
        rule_id = rule_service.create_rule(sample_book.id, "  tesco ", " Groceries ", "  ")

        rule = rule_service.get_rule(sample_book.id, rule_id)
        assert rule.keyword == "tesco"
        assert rule.category == "Groceries"
        assert rule.sub_category is None

    def test_create_rule_requires_keyword_and_category(self, rule_service, sample_book):
        with pytest.raises(ValidationError):
            rule_service.create_rule(sample_book.id, "  ", "Groceries")
        with pytest.raises(ValidationError):
            rule_service.create_rule(sample_book.id, "tesco", "")

    def test_create_rule_unknown_book(self, rule_service):
        with pytest.raises(NotFoundError):
            rule_service.create_rule(999, "tesco", "Groceries")

    def test_duplicate_keyword_rejected(self, rule_service, sample_book):
        rule_service.create_rule(sample_book.id, "tesco", "Groceries")

        with pytest.raises(ConflictError) as excinfo:
            rule_service.create_rule(sample_book.id, "tesco", "Shopping")

        assert "already exists" in str(excinfo.value)

    def test_update_rule_keeps_position(self, rule_service, sample_book):
        first = rule_service.create_rule(sample_book.id, "amazon", "Shopping")
        rule_service.create_rule(sample_book.id, "prime", "Subscriptions")

        rule_service.update_rule(sample_book.id, first, "amazon, amzn", "Online")

        rules = rule_service.list_rules(sample_book.id)
        assert [r.id for r in rules][0] == first
        assert rules[0].keyword == "amazon, amzn"
        assert rules[0].category == "Online"

    def test_update_rule_duplicate_keyword(self, rule_service, sample_book):
        rule_service.create_rule(sample_book.id, "amazon", "Shopping")
        second = rule_service.create_rule(sample_book.id, "prime", "Subscriptions")

        with pytest.raises(ConflictError):
            rule_service.update_rule(sample_book.id, second, "amazon", "Subscriptions")

    def test_update_rule_in_other_book_not_found(self, rule_service, account_service, sample_book):
        other_book = account_service.create_account_book("Business")
        rule_id = rule_service.create_rule(other_book, "tesco", "Groceries")

        with pytest.raises(NotFoundError):
            rule_service.update_rule(sample_book.id, rule_id, "tesco", "Food")

    def test_delete_rule(self, rule_service, sample_book):
        rule_id = rule_service.create_rule(sample_book.id, "tesco", "Groceries")

        rule_service.delete_rule(sample_book.id, rule_id)

        assert rule_service.list_rules(sample_book.id) == []
        with pytest.raises(NotFoundError):
            rule_service.delete_rule(sample_book.id, rule_id)

    def test_apply_rules_to_account(
        self, rule_service, transaction_service, sample_book, sample_account
    ):
        transaction_service.create_transaction(
            account_id=sample_account.id,
            transaction_date=date(2024, 1, 3),
            description="TESCO STORES",
            debit_amount=Decimal("10.00"),
        )
        transaction_service.create_transaction(
            account_id=sample_account.id,
            transaction_date=date(2024, 1, 4),
            description="SHELL",
            debit_amount=Decimal("40.00"),
            category="Fuel",
        )
        rule_service.create_rule(sample_book.id, "tesco", "Groceries", "Supermarket")

        changed = rule_service.apply_rules_to_account(sample_account.id)

        assert changed == 1
        categories = {
            t.description: (t.category, t.sub_category)
            for t in transaction_service.list_transactions(sample_account.id)
        }
        assert categories == {
            "TESCO STORES": ("Groceries", "Supermarket"),
            "SHELL": ("Fuel", None),
        }
        assert rule_service.apply_rules_to_account(sample_account.id) == 0
