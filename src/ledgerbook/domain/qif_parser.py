"""QIF (Quicken Interchange Format) parser.

Each line starts with a one-character field code followed by the value:

    D  date, day-first (DD/MM/YY or DD/MM/YYYY)
    T  signed amount, negative for debits
    P  payee / description
    M  memo
    L  category, optionally "Category:Subcategory"
    N  check number (ignored)
    C  cleared status (ignored)
    ^  end of record

Lines starting with ``!`` are section headers and are skipped, as are blank
lines and unknown field codes. Malformed records are reported and skipped;
they never stop the remaining records from being read.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from ledgerbook.domain.entities import LedgerEntry, ParseResult, UNCATEGORIZED, ZERO
from ledgerbook.utils.amount_parser import parse_amount, quantize_amount
from ledgerbook.utils.date_parser import parse_qif_date

RECORD_TERMINATOR = "^"
HEADER_PREFIX = "!"

REQUIRED_FIELDS = ("date", "description", "amount")

INCOMPLETE_TRAILING_RECORD = "Incomplete record at end of file (missing ^ terminator)"


class ParserState(Enum):
    """Whether any field of the current record has been read yet."""

    IDLE = "idle"
    ACCUMULATING = "accumulating"


@dataclass
class RecordAccumulator:
    """Fields collected for the record currently being read."""

    transaction_date: Optional[date] = None
    description: Optional[str] = None
    debit_amount: Optional[Decimal] = None
    credit_amount: Optional[Decimal] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    memo: Optional[str] = None
    invalid: dict[str, str] = field(default_factory=dict)

    def missing_fields(self) -> list[str]:
        missing = []
        if self.transaction_date is None:
            missing.append("date")
        if not self.description:
            missing.append("description")
        if self.debit_amount is None and self.credit_amount is None:
            missing.append("amount")
        return missing

    def to_entry(self) -> LedgerEntry:
        return LedgerEntry(
            transaction_date=self.transaction_date,
            description=self.description,
            debit_amount=self.debit_amount if self.debit_amount is not None else ZERO,
            credit_amount=self.credit_amount if self.credit_amount is not None else ZERO,
            category=self.category or UNCATEGORIZED,
            sub_category=self.sub_category,
            memo=self.memo,
        )


def split_category(value: str) -> tuple[str, Optional[str]]:
    """Split ``Category:Subcategory`` on the first colon."""
    category, _, sub_category = value.partition(":")
    return category.strip(), (sub_category.strip() or None)


def decode_content(content: bytes | str) -> str:
    """Decode an uploaded file, falling back to Latin-1 for legacy exports."""
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


class QIFParser:
    """Line-driven two-state parser producing ledger entries and errors."""

    def __init__(self):
        self.state = ParserState.IDLE
        self.record = RecordAccumulator()
        self.record_number = 0
        self.result = ParseResult()

    def feed(self, line: str) -> None:
        """Consume one physical line."""
        line = line.strip()
        if not line or line.startswith(HEADER_PREFIX):
            return

        code, value = line[0], line[1:].strip()
        if code == RECORD_TERMINATOR:
            self._close_record()
            return

        if self._read_field(code, value):
            self.state = ParserState.ACCUMULATING

    def finish(self) -> ParseResult:
        """Signal end of input and return the accumulated result."""
        if self.state is ParserState.ACCUMULATING:
            self.result.errors.append(INCOMPLETE_TRAILING_RECORD)
            self._reset()
        return self.result

    def _read_field(self, code: str, value: str) -> bool:
        """Apply a field line to the current record.

        Returns:
            True if the line carried a field this parser captures
        """
        record = self.record
        if code == "D":
            try:
                record.transaction_date = parse_qif_date(value)
                record.invalid.pop("date", None)
            except ValueError as e:
                record.transaction_date = None
                record.invalid["date"] = str(e)
        elif code == "T":
            try:
                amount = parse_amount(value)
                cents = quantize_amount(abs(amount))
            except ValueError:
                record.debit_amount = record.credit_amount = None
                record.invalid["amount"] = f"Invalid amount '{value}'"
            else:
                record.invalid.pop("amount", None)
                if amount < 0:
                    record.debit_amount = cents
                    record.credit_amount = ZERO
                else:
                    record.debit_amount = ZERO
                    record.credit_amount = cents
        elif code == "P":
            record.description = value
        elif code == "M":
            record.memo = value or None
        elif code == "L":
            if not value:
                return False
            record.category, record.sub_category = split_category(value)
        else:
            # N, C and unknown codes
            return False
        return True

    def _close_record(self) -> None:
        self.record_number += 1
        record = self.record

        if record.invalid:
            problem = next(iter(record.invalid.values()))
            self.result.errors.append(f"Record {self.record_number}: {problem}")
        else:
            missing = record.missing_fields()
            if missing:
                self.result.errors.append(
                    f"Record {self.record_number}: Missing {', '.join(missing)}"
                )
            else:
                self.result.entries.append(record.to_entry())

        self._reset()

    def _reset(self) -> None:
        self.record = RecordAccumulator()
        self.state = ParserState.IDLE


def parse_interchange_file(content: bytes | str) -> ParseResult:
    """Parse a QIF file into ledger entries and structural errors.

    Args:
        content: Full file content, as uploaded bytes or text

    Returns:
        ParseResult with every structurally complete entry and one error
        string per rejected record, both in file order
    """
    parser = QIFParser()
    for line in decode_content(content).splitlines():
        parser.feed(line)
    return parser.finish()
