"""QIF import commands."""

import click
from pathlib import Path
from ledgerbook.cli.error_handling import format_amount, handle_domain_error
from ledgerbook.domain.errors import DomainError, ImportRejectedError, StorageError
from ledgerbook.domain.qif_import import QIFImportService
from ledgerbook.domain.qif_parser import parse_interchange_file

MAX_DISPLAYED_ERRORS = 20


def _echo_errors(errors) -> None:
    for error in errors[:MAX_DISPLAYED_ERRORS]:
        click.echo(f"    {error}", err=True)
    if len(errors) > MAX_DISPLAYED_ERRORS:
        click.echo(f"    ... and {len(errors) - MAX_DISPLAYED_ERRORS} more", err=True)


@click.command("import")
@click.argument("account_id", type=int)
@click.argument("qif_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_qif(ctx, account_id: int, qif_file: str):
    """Import transactions from a QIF file into an account."""
    db = ctx.obj["db"]
    service = QIFImportService(db)

    try:
        result = service.import_path(account_id, qif_file)
    except ImportRejectedError as e:
        click.echo(f"Error: {e}", err=True)
        _echo_errors(e.errors)
        ctx.exit(1)
        return
    except (DomainError, StorageError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result.imported} transactions")
    click.echo(f"  Failed: {result.failed}")
    click.echo(f"  Parse errors: {result.parse_errors}")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        _echo_errors(result.errors)


@click.command("parse")
@click.argument("qif_file", type=click.Path(exists=True, dir_okay=False))
def parse_qif(qif_file: str):
    """Parse a QIF file without importing it."""
    result = parse_interchange_file(Path(qif_file).read_bytes())

    for entry in result.entries:
        category = entry.category
        if entry.sub_category:
            category = f"{category}:{entry.sub_category}"
        amount = entry.credit_amount - entry.debit_amount
        click.echo(
            f"{entry.transaction_date.isoformat()}  {entry.description[:30]:30s}"
            f"  {format_amount(amount):>12}  {category}"
        )
    click.echo(f"\n{len(result.entries)} entries, {len(result.errors)} errors")
    _echo_errors(result.errors)


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_qif)
    cli.add_command(parse_qif)
