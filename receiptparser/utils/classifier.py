"""
Line predicates that keep dates, prices and field labels out of store-name candidates.
"""

from .patterns import AMOUNT_SHAPE, DATE_SHAPE, MERCHANT_SKIP_LABELS, PatternSpec

DATE_LINE = PatternSpec(
    name='date_shape',
    pattern=DATE_SHAPE,
    example='03/04/2024',
    notes='Numeric, ISO or textual-month dates anywhere in the line',
)

AMOUNT_LINE = PatternSpec(
    name='amount_shape',
    pattern=AMOUNT_SHAPE,
    example='$1,234.56',
    notes='Decimal with exactly two fraction digits, optional currency symbol',
)

LABEL_LINE = PatternSpec(
    name='field_label',
    pattern='{labels}',
    example='Invoice No',
    notes='Receipt jargon, matched as a substring',
    labels=MERCHANT_SKIP_LABELS,
    bounded_labels=False,
    group=0,
)


def looks_like_date(line: str) -> bool:
    return bool(line) and DATE_LINE.compiled.search(line) is not None


def looks_like_amount(line: str) -> bool:
    return bool(line) and AMOUNT_LINE.compiled.search(line) is not None


def looks_like_label(line: str) -> bool:
    """True when the line carries receipt jargon such as "Total" or "Qty"."""
    return bool(line) and LABEL_LINE.compiled.search(line) is not None
