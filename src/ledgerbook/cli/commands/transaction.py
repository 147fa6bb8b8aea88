"""Transaction management commands."""

import click
from decimal import Decimal
from ledgerbook.cli.error_handling import format_amount, handle_domain_error
from ledgerbook.domain.entities import ZERO
from ledgerbook.domain.errors import DomainError, StorageError
from ledgerbook.domain.transaction import TransactionService
from ledgerbook.utils.amount_parser import parse_amount
from ledgerbook.utils.date_parser import parse_date


def _split_amount(amount: Decimal) -> tuple[Decimal, Decimal]:
    """Turn a signed amount into (debit, credit)."""
    if amount < 0:
        return abs(amount), ZERO
    return ZERO, amount


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.argument("account_id", type=int)
@click.option("--date", "date_str", required=True, help="Transaction date (DD/MM/YYYY, YYYY-MM-DD, 'today')")
@click.option("--amount", required=True, help="Signed amount, negative for money out (e.g., -42.50)")
@click.option("--description", required=True, help="Transaction description")
@click.option("--category", help="Category (rules may override it)")
@click.option("--sub-category", help="Sub category")
@click.option("--memo", help="Memo")
@click.option("--no-rules", is_flag=True, help="Do not apply categorization rules")
@click.pass_context
def add_transaction(
    ctx,
    account_id: int,
    date_str: str,
    amount: str,
    description: str,
    category: str | None,
    sub_category: str | None,
    memo: str | None,
    no_rules: bool,
):
    """Add a transaction to an account.

    Examples:
        ledgerbook transaction add 1 --date today --amount -12.50 --description "Coffee"
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        txn_date = parse_date(date_str)
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    debit, credit = _split_amount(txn_amount)
    try:
        transaction_id = service.create_transaction(
            account_id=account_id,
            transaction_date=txn_date,
            description=description,
            debit_amount=debit,
            credit_amount=credit,
            category=category,
            sub_category=sub_category,
            memo=memo,
            apply_rules=not no_rules,
        )
        click.echo(f"Created transaction {transaction_id}")
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.argument("account_id", type=int)
@click.option("--start-date", help="Only transactions on or after this date")
@click.option("--end-date", help="Only transactions on or before this date")
@click.pass_context
def list_transactions(ctx, account_id: int, start_date: str | None, end_date: str | None):
    """List an account's transactions."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        start = parse_date(start_date) if start_date else None
        end = parse_date(end_date) if end_date else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        transactions = service.list_transactions(account_id, start_date=start, end_date=end)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not transactions:
        click.echo("No transactions found.")
        return

    for txn in transactions:
        category = txn.category
        if txn.sub_category:
            category = f"{category}:{txn.sub_category}"
        click.echo(
            f"{txn.id:5d}  {txn.transaction_date.isoformat()}  {txn.description[:30]:30s}"
            f"  {format_amount(txn.signed_amount):>12}  {category}"
        )


@transaction_group.command("edit")
@click.argument("transaction_id", type=int)
@click.option("--account", "account_id", type=int, help="Move to another account")
@click.option("--date", "date_str", help="New date")
@click.option("--amount", help="New signed amount")
@click.option("--description", help="New description")
@click.option("--category", help="New category")
@click.option("--sub-category", help="New sub category, or empty string to clear")
@click.option("--memo", help="New memo")
@click.option("--link", "linked_transaction_id", type=int, help="ID of a related transaction")
@click.pass_context
def edit_transaction(
    ctx,
    transaction_id: int,
    account_id: int | None,
    date_str: str | None,
    amount: str | None,
    description: str | None,
    category: str | None,
    sub_category: str | None,
    memo: str | None,
    linked_transaction_id: int | None,
):
    """Update the fields that are provided.

    Examples:
        ledgerbook transaction edit 7 --amount -80.00
        ledgerbook transaction edit 7 --category Groceries --sub-category ""
    """
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        txn_date = parse_date(date_str) if date_str else None
        txn_amount = parse_amount(amount) if amount is not None else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    debit = credit = None
    if txn_amount is not None:
        debit, credit = _split_amount(txn_amount)

    clear_sub_category = sub_category == ""
    try:
        service.update_transaction(
            transaction_id,
            account_id=account_id,
            transaction_date=txn_date,
            description=description,
            debit_amount=debit,
            credit_amount=credit,
            category=category,
            sub_category=None if clear_sub_category else sub_category,
            memo=memo,
            linked_transaction_id=linked_transaction_id,
            clear_sub_category=clear_sub_category,
        )
        click.echo(f"Updated transaction {transaction_id}")
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("account_id", type=int)
@click.argument("transaction_ids", type=int, nargs=-1, required=True)
@click.pass_context
def delete_transactions(ctx, account_id: int, transaction_ids: tuple[int, ...]):
    """Delete one or more transactions of an account."""
    db = ctx.obj["db"]
    service = TransactionService(db)

    try:
        if len(transaction_ids) == 1:
            txn = service.get_transaction(transaction_ids[0])
            if txn is None or txn.account_id != account_id:
                click.echo(f"Error: Transaction {transaction_ids[0]} not found", err=True)
                ctx.exit(1)
            service.delete_transaction(transaction_ids[0])
            deleted = 1
        else:
            deleted = service.bulk_delete_transactions(account_id, list(transaction_ids))
        click.echo(f"Deleted {deleted} transaction{'s' if deleted != 1 else ''}")
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
