"""
Shared money parsing utilities for OCR'd receipt amounts.

Handles the separator styles seen on printed receipts:
- US: 1,234.56
- European: 1.234,56
- Ungrouped: 1234.56 or 1234,56
- Missing decimals: 1234 → 1234.00
- One decimal digit: 12,5 → 12.50

Whichever of ``.`` or ``,`` is followed by one or two trailing digits is the
decimal point (12.5 → 12.50); every other ``.`` or ``,`` is a grouping
separator, so a three-digit tail such as 1.234 reads as 1234.00.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional
import re

TWO_PLACES = Decimal('0.01')

# Leading currency symbol, optionally with a short country prefix (C$, CA$, US$)
_CURRENCY_PREFIX = re.compile(r'^(?:[A-Za-z]{0,3}[$€£¥])\s*')
_DECIMAL_TAIL = re.compile(r'[.,](\d{1,2})$')
_DIGITS = re.compile(r'\d+')


def parse_amount(amount_str: str) -> Optional[Decimal]:
    """
    Parse a receipt amount token into a Decimal with two fraction digits.

    Args:
        amount_str: Token such as "$1,234.56", "1.234,56" or "12"

    Returns:
        Decimal amount, or None if the token is not a non-negative amount

    Examples:
        >>> parse_amount("$1,234.56")
        Decimal('1234.56')
        >>> parse_amount("1.234,56")
        Decimal('1234.56')
        >>> parse_amount("12")
        Decimal('12.00')
    """
    if not amount_str or not isinstance(amount_str, str):
        return None

    cleaned = _CURRENCY_PREFIX.sub('', amount_str.strip()).strip()
    if not cleaned:
        return None

    tail = _DECIMAL_TAIL.search(cleaned)
    if tail:
        integer_part, fraction = cleaned[:tail.start()], tail.group(1).ljust(2, '0')
    else:
        integer_part, fraction = cleaned, '00'

    # Remaining separators are grouping
    integer_part = integer_part.replace(',', '').replace('.', '')
    if not integer_part:
        if not tail:
            return None
        integer_part = '0'

    if not _DIGITS.fullmatch(integer_part):
        return None

    try:
        return Decimal(f'{integer_part}.{fraction}').quantize(TWO_PLACES)
    except InvalidOperation:
        return None


def format_amount(amount: Decimal) -> str:
    """
    Format an amount with exactly two fraction digits and no grouping.

    Examples:
        >>> format_amount(Decimal('1234.5'))
        '1234.50'
    """
    return f'{amount.quantize(TWO_PLACES):f}'
