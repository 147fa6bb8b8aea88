"""Main CLI entry point."""

import logging

import click
from ledgerbook.database.factories import create_sqlite_database

# Import and register all commands at module level
from ledgerbook.cli.commands import (
    account,
    book,
    import_cmd,
    rule,
    transaction,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERBOOK_DB_PATH environment variable)",
    envvar="LEDGERBOOK_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
    envvar="LEDGERBOOK_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Ledgerbook - personal multi-book finance tracker.

    Import QIF exports into accounts, categorize them with keyword rules and
    follow each account's balance over a rolling 24-month window.
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
book.register_commands(cli)
account.register_commands(cli)
rule.register_commands(cli)
transaction.register_commands(cli)
import_cmd.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
