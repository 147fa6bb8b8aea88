"""Domain layer for ledgerbook application."""

from importlib import import_module

# Services import the database layer, which imports domain.entities, so they
# are resolved lazily to keep ``import ledgerbook.database`` cycle free.
_EXPORTS = {
    "AccountService": "ledgerbook.domain.account",
    "AggregationService": "ledgerbook.domain.aggregation",
    "QIFImportService": "ledgerbook.domain.qif_import",
    "RuleService": "ledgerbook.domain.rules",
    "TransactionService": "ledgerbook.domain.transaction",
    "parse_interchange_file": "ledgerbook.domain.qif_parser",
}

__all__ = list(_EXPORTS)


def __getattr__(name):
    if name in _EXPORTS:
        return getattr(import_module(_EXPORTS[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
