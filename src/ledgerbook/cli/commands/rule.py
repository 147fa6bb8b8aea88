"""Category rule commands."""

import click
from ledgerbook.cli.error_handling import handle_domain_error
from ledgerbook.domain.entities import UNCATEGORIZED
from ledgerbook.domain.errors import DomainError, StorageError
from ledgerbook.domain.rules import RuleService


@click.group()
def rule_group():
    """Manage keyword categorization rules.

    Rules are checked in the order they were added; the first rule with a
    keyword found in a description decides the category.
    """
    pass


@rule_group.command("add")
@click.argument("book_id", type=int)
@click.argument("keyword")
@click.argument("category")
@click.option("--sub-category", help="Sub category to assign")
@click.pass_context
def add_rule(ctx, book_id: int, keyword: str, category: str, sub_category: str | None):
    """Add a rule. KEYWORD may list several comma-separated keywords.

    Examples:
        ledgerbook rule add 1 "amazon" "Shopping"
        ledgerbook rule add 1 "netflix, spotify" "Subscriptions" --sub-category "Streaming"
    """
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        rule_id = service.create_rule(book_id, keyword, category, sub_category)
        click.echo(f"Created rule {rule_id}")
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)


@rule_group.command("list")
@click.argument("book_id", type=int)
@click.pass_context
def list_rules(ctx, book_id: int):
    """List rules in evaluation order."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        rules = service.list_rules(book_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not rules:
        click.echo("No rules found.")
        return

    for position, rule in enumerate(rules, start=1):
        target = rule.category
        if rule.sub_category:
            target = f"{target}:{rule.sub_category}"
        click.echo(f"{position:3d}. [ID {rule.id}] {rule.keyword} -> {target}")


@rule_group.command("edit")
@click.argument("book_id", type=int)
@click.argument("rule_id", type=int)
@click.argument("keyword")
@click.argument("category")
@click.option("--sub-category", help="Sub category to assign")
@click.pass_context
def edit_rule(ctx, book_id: int, rule_id: int, keyword: str, category: str, sub_category: str | None):
    """Replace a rule's keyword and target category."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        service.update_rule(book_id, rule_id, keyword, category, sub_category)
        click.echo(f"Updated rule {rule_id}")
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)


@rule_group.command("delete")
@click.argument("book_id", type=int)
@click.argument("rule_id", type=int)
@click.pass_context
def delete_rule(ctx, book_id: int, rule_id: int):
    """Delete a rule."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        service.delete_rule(book_id, rule_id)
        click.echo(f"Deleted rule {rule_id}")
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)


@rule_group.command("match")
@click.argument("book_id", type=int)
@click.argument("description")
@click.pass_context
def match_description(ctx, book_id: int, description: str):
    """Show which category a description would get."""
    db = ctx.obj["db"]
    service = RuleService(db)

    category, sub_category = service.match_category(book_id, description, UNCATEGORIZED, None)
    if sub_category:
        click.echo(f"{category}:{sub_category}")
    else:
        click.echo(category)


@rule_group.command("apply")
@click.argument("account_id", type=int)
@click.pass_context
def apply_rules(ctx, account_id: int):
    """Re-categorize an account's existing transactions with the current rules."""
    db = ctx.obj["db"]
    service = RuleService(db)

    try:
        changed = service.apply_rules_to_account(account_id)
        click.echo(f"Re-categorized {changed} transaction{'s' if changed != 1 else ''}")
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register rule commands with main CLI."""
    cli.add_command(rule_group, name="rule")
