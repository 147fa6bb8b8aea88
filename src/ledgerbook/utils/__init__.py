"""Utility functions for ledgerbook."""

from ledgerbook.utils.date_parser import parse_date, parse_qif_date
from ledgerbook.utils.amount_parser import parse_amount, quantize_amount

__all__ = ["parse_date", "parse_qif_date", "parse_amount", "quantize_amount"]
