"""
Money parsing and formatting helpers.
"""
import re
from decimal import Decimal
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

DECIMAL_PATTERN = r'[\d,]+\.\d{2}'
DECIMAL_RE = re.compile(rf'({DECIMAL_PATTERN})', re.ASCII)


def normalize_money(value: str) -> Decimal:
    """
    Parse a grouped decimal string such as "10,000.00".

    Args:
        value: Raw money string

    Returns:
        Decimal value

    Raises:
        decimal.InvalidOperation if the cleaned value is not a number
    """
    cleaned = re.sub(r'[,\s]', '', value.strip())
    return Decimal(cleaned)


def format_money(amount: Decimal, currency: str = "NGN") -> str:
    """Render an amount as "NGN 1,234.56"."""
    return f"{currency} {amount:,.2f}"


def currency_amount_pattern(currency: str) -> re.Pattern:
    """Pattern capturing every "<currency> <amount>" occurrence."""
    return re.compile(rf'{re.escape(currency)}\s*({DECIMAL_PATTERN})', re.ASCII)


def currency_strip_pattern(currency: str) -> re.Pattern:
    """Pattern matching "<currency> <amount>" substrings removed from descriptions."""
    return re.compile(rf'{re.escape(currency)} {DECIMAL_PATTERN}', re.ASCII)


def find_amounts(line: str, pattern: re.Pattern) -> List[Decimal]:
    """Parse every currency amount in a line, left to right."""
    return [normalize_money(match.group(1)) for match in pattern.finditer(line)]


def first_decimal(line: str) -> Optional[str]:
    """Return the first two-decimal number in a line as written, or None."""
    match = DECIMAL_RE.search(line)
    return match.group(1) if match else None


def first_digits(line: str) -> Optional[str]:
    """Return the first run of digits in a line, or None."""
    match = re.search(r'\d+', line, re.ASCII)
    return match.group() if match else None
