"""CLI error handling helpers."""

import click

from ledgerbook.domain.errors import DomainError, StorageError


def handle_domain_error(ctx: click.Context, error: DomainError | StorageError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def format_amount(amount) -> str:
    """Render a two-place amount with thousands separators."""
    return f"{amount:,.2f}"
