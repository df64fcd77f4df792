"""
Display formatting for amounts and dates.

Amounts are shown Indonesian style ("Rp 1.250.000"), dates in long form
("15 Januari 2024"). Amount inputs accept the same grouping the display
uses, so a value can be copied from the dashboard into a form.
"""

import re
from datetime import date, datetime
from typing import Optional


MONTH_NAMES = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]

_NON_DIGITS = re.compile(r"[^\d]")


def format_number(value: int) -> str:
    """Group thousands with dots: 1000000 -> '1.000.000'."""
    grouped = f"{abs(value):,}".replace(",", ".")
    return f"-{grouped}" if value < 0 else grouped


def format_currency(value: int, prefix: str = "Rp") -> str:
    return f"{prefix} {format_number(value)}"


def format_date(value: date | datetime) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.day} {MONTH_NAMES[value.month - 1]} {value.year}"


def parse_amount_input(text: Optional[str]) -> Optional[int]:
    """
    Read an amount typed by the user.

    Every non-digit is dropped, so "1.000.000", "Rp 1.000.000" and "1000000"
    all read as 1000000. Returns None when no digits are left.
    """
    digits = _NON_DIGITS.sub("", text or "")
    if not digits:
        return None
    return int(digits)


def format_amount_input(text: Optional[str]) -> str:
    """Normalize what the user typed into grouped form, '' if empty."""
    amount = parse_amount_input(text)
    return "" if amount is None else format_number(amount)
