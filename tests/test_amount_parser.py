"""Tests for amount parsing."""

import pytest
from decimal import Decimal

from ledgerbook.utils.amount_parser import parse_amount, quantize_amount


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("123.45", Decimal("123.45")),
        ("-123.45", Decimal("-123.45")),
        ("1,234.56", Decimal("1234.56")),
        ("$12.00", Decimal("12.00")),
        ("(45.20)", Decimal("-45.20")),
        ("  7 ", Decimal("7")),
    ],
)
def test_parse_amount(raw, expected):
    """Test supported amount formats."""
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "abc", "NaN", "Infinity", "1.2.3"])
def test_parse_amount_rejects_garbage(raw):
    """Test that unparseable or non-finite amounts raise ValueError."""
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_quantize_amount_rounds_half_up():
    """Test rounding to cents."""
    assert quantize_amount(Decimal("10.005")) == Decimal("10.01")
    assert quantize_amount(Decimal("-10.005")) == Decimal("-10.01")
    assert quantize_amount(Decimal("3")) == Decimal("3.00")


def test_quantize_amount_out_of_range():
    """Test that amounts too large for cents raise ValueError."""
    with pytest.raises(ValueError):
        quantize_amount(Decimal("1e30"))
