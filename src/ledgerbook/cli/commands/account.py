"""Account management commands."""

import click
from ledgerbook.cli.error_handling import format_amount, handle_domain_error
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.aggregation import AggregationService
from ledgerbook.domain.errors import DomainError, StorageError
from ledgerbook.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("book_id", type=int)
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--starting-balance", help="Opening balance (e.g., 1500.00 or -20.00)")
@click.pass_context
def create_account(ctx, book_id: int, name: str, starting_balance: str | None):
    """Create a new account in an account book.

    Examples:
        ledgerbook account create 1 "Checking"
        ledgerbook account create 1 "Savings" --starting-balance 2500.00
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    balance = None
    if starting_balance is not None:
        try:
            balance = parse_amount(starting_balance)
        except ValueError as e:
            click.echo(f"Error: Invalid starting balance: {e}", err=True)
            ctx.exit(1)

    try:
        account_id = service.create_account(book_id, name, starting_balance=balance)
        click.echo(f"Created account '{name.strip()}' (ID: {account_id})")
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.argument("book_id", type=int)
@click.pass_context
def list_accounts(ctx, book_id: int):
    """List the accounts of an account book with this month's totals."""
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        accounts = service.list_accounts(book_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s}"
            f" | Debits: {format_amount(acc.total_monthly_debits):>12}"
            f" | Credits: {format_amount(acc.total_monthly_credits):>12}"
            f" | Net: {format_amount(acc.total_monthly_balance):>12}"
        )


@account_group.command("delete")
@click.argument("account_id", type=int)
@click.confirmation_option(prompt="Delete this account and all of its transactions?")
@click.pass_context
def delete_account(ctx, account_id: int) -> None:
    """Delete an account and all of its transactions."""
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        service.delete_account(account_id)
        click.echo(f"Deleted account {account_id}")
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)


@account_group.command("history")
@click.argument("account_id", type=int)
@click.pass_context
def balance_history(ctx, account_id: int) -> None:
    """Show the stored 24-month balance history of an account."""
    db = ctx.obj["db"]
    service = AggregationService(db)

    try:
        history = service.get_balance_history(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not history:
        click.echo("No balance history yet. Run 'account recalculate' first.")
        return

    click.echo(f"{'Month':8s}  {'Debits':>12}  {'Credits':>12}  {'Balance':>12}")
    for snapshot in history:
        click.echo(
            f"{snapshot.month:8s}  {format_amount(snapshot.debits):>12}"
            f"  {format_amount(snapshot.credits):>12}  {format_amount(snapshot.balance):>12}"
        )


@account_group.command("recalculate")
@click.argument("account_id", type=int)
@click.pass_context
def recalculate_account(ctx, account_id: int) -> None:
    """Recompute an account's balances from its transactions."""
    db = ctx.obj["db"]
    service = AggregationService(db)

    try:
        aggregates = service.recompute_account(account_id)
    except (DomainError, StorageError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Recalculated account {account_id}")
    click.echo(f"  Balance: {format_amount(aggregates.history[-1].balance)}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
