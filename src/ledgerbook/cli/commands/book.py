"""Account book commands."""

import click
from ledgerbook.cli.error_handling import format_amount, handle_domain_error
from ledgerbook.domain.account import AccountService
from ledgerbook.domain.aggregation import AggregationService
from ledgerbook.domain.errors import DomainError


@click.group()
def book_group():
    """Manage account books."""
    pass


@book_group.command("create")
@click.argument("name", metavar="BOOK_NAME")
@click.pass_context
def create_book(ctx, name: str):
    """Create a new account book.

    Examples:
        ledgerbook book create "Household"
    """
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        book_id = service.create_account_book(name)
        click.echo(f"Created account book '{name.strip()}' (ID: {book_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@book_group.command("list")
@click.pass_context
def list_books(ctx):
    """List all account books."""
    db = ctx.obj["db"]
    service = AccountService(db)

    books = service.list_account_books()
    if not books:
        click.echo("No account books found.")
        return

    click.echo("\nAccount books:")
    click.echo("-" * 60)
    for book in books:
        click.echo(f"ID: {book.id:3d} | {book.name}")


@book_group.command("categories")
@click.argument("book_id", type=int)
@click.pass_context
def list_categories(ctx, book_id: int):
    """List the categories used by an account book's transactions."""
    db = ctx.obj["db"]
    service = AccountService(db)

    try:
        categories = service.list_categories(book_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not categories:
        click.echo("No categories found.")
        return

    for category, sub_categories in categories.items():
        click.echo(category)
        for sub_category in sub_categories:
            click.echo(f"  {sub_category}")


@book_group.command("recalculate")
@click.argument("book_id", type=int)
@click.pass_context
def recalculate_book(ctx, book_id: int):
    """Recompute balances for every account in a book."""
    db = ctx.obj["db"]
    service = AggregationService(db)

    try:
        result = service.recompute_account_book(book_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("Balance recalculation complete")
    click.echo(f"  Total accounts: {result['total']}")
    click.echo(f"  Successful: {result['successful']}")
    click.echo(f"  Failed: {result['failed']}")
    if result["failed"]:
        ctx.exit(1)


@book_group.command("dashboard")
@click.argument("book_id", type=int)
@click.option("--months", type=int, default=6, show_default=True, help="Months of history per account")
@click.option("--recent", type=int, default=5, show_default=True, help="Recent transactions per account")
@click.pass_context
def dashboard(ctx, book_id: int, months: int, recent: int):
    """Show recent balances and transactions for each account."""
    db = ctx.obj["db"]
    service = AggregationService(db)

    try:
        rows = service.get_dashboard(book_id, months=months, recent=recent)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not rows:
        click.echo("No accounts found.")
        return

    for row in rows:
        account = row["account"]
        click.echo(f"\n{account.name} (ID: {account.id})")
        click.echo(f"  This month: balance {format_amount(account.total_monthly_balance)}")
        for snapshot in row["history"]:
            click.echo(
                f"  {snapshot.month}  debits {format_amount(snapshot.debits):>12}"
                f"  credits {format_amount(snapshot.credits):>12}"
                f"  balance {format_amount(snapshot.balance):>12}"
            )
        if row["recent_transactions"]:
            click.echo("  Recent transactions:")
            for txn in row["recent_transactions"]:
                click.echo(
                    f"    {txn.transaction_date.isoformat()}  {txn.description[:30]:30s}"
                    f"  {format_amount(txn.signed_amount):>12}"
                )


def register_commands(cli):
    """Register account book commands with main CLI."""
    cli.add_command(book_group, name="book")
