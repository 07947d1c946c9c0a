"""
Declarative pattern table for receipt field recognition.

Every field is described by data rather than code:
- a label vocabulary (case-insensitive phrases such as "total" or "invoice no")
- a shape pattern describing what the value must look like
- a capture rule naming the group that holds the value

PatternSpec compiles an entry as soon as it is built, so a malformed table
stops the parser at startup instead of failing on a receipt.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple, Union
import re

__all__ = [
    'PatternConfigError', 'PatternSpec', 'render_labels',
    'INVOICE_LABELS', 'TOTAL_LABELS', 'DATE_LINE_LABELS', 'MERCHANT_SKIP_LABELS',
    'CURRENCY', 'PRICE_NUMBER', 'AMOUNT_NUMBER', 'AMOUNT_SHAPE', 'LABELED_AMOUNT_SHAPE',
    'DATE_SHAPE', 'INVOICE_TOKEN', 'INVOICE_PATTERN', 'TOTAL_PATTERN',
    'STORE_CAPS', 'STORE_ALPHA_RUN', 'QUANTITY_PRICE_ITEM', 'CODED_ITEM',
]


class PatternConfigError(ValueError):
    """A pattern table entry is invalid (bad regex, missing vocabulary or capture group)."""


# ---------------------------------------------------------------------------
# Label vocabularies
# ---------------------------------------------------------------------------

INVOICE_LABELS = (
    'invoice number', 'invoice no', 'invoice #', 'invoice#', 'invoice',
    'inv. no', 'inv no', 'inv #', 'inv', '#',
)

TOTAL_LABELS = ('grand total', 'amount due', 'balance due', 'total', 'amount')

# Matched as plain substrings: "trans" also covers "Transaction".
DATE_LINE_LABELS = ('date', 'purchase', 'trans', 'txn')

# Receipt jargon that disqualifies a line from being the store name (substrings).
MERCHANT_SKIP_LABELS = ('invoice', 'inv', 'total', 'amount', 'tax', 'qty', 'item')


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

CURRENCY = r'[$€£¥]'

# Exactly two fraction digits, optional grouping: 3.49, 1,234.56, 1.234,56
PRICE_NUMBER = r'(?:\d{1,3}(?:[,.]\d{3})+[.,]\d{2}|\d+[.,]\d{2})'

# Fraction optional; only used right after a total label.
AMOUNT_NUMBER = r'(?:\d{1,3}(?:[,.]\d{3})+(?:[.,]\d{2})?|\d+(?:[.,]\d{2})?)'

AMOUNT_SHAPE = r'(?:' + CURRENCY + r'[ \t]*)?(?<![\d.,])(' + PRICE_NUMBER + r')(?![.,]?\d)'

LABELED_AMOUNT_SHAPE = (
    r'(?:[A-Za-z]{0,3}' + CURRENCY + r'[ \t]*)?(' + AMOUNT_NUMBER + r')(?![.,]?\d)'
)

_MONTH_WORD = r'[^\W\d_]{3,9}\.?'

DATE_SHAPE = (
    r'('
    r'(?<!\d)\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}(?!\d)'                        # 03/04/2024
    r'|(?<!\d)\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2}(?!\d)'                         # 2024-03-04
    r'|(?<![^\W\d_])' + _MONTH_WORD + r'[ \t]+\d{1,2},?[ \t]+\d{2,4}(?!\d)'  # Mar 4, 2024
    r'|(?<!\d)\d{1,2}[ \t]+' + _MONTH_WORD + r',?[ \t]+\d{2,4}(?!\d)'        # 4 Mar 2024
    r')'
)

INVOICE_TOKEN = r'([A-Za-z0-9][A-Za-z0-9\-/_.]{0,39})'

# Label and token stay on one line; a bare "INVOICE" heading does not swallow the next line.
INVOICE_PATTERN = r'{labels}[ \t]*[:#.\-]*[ \t]*' + INVOICE_TOKEN

# The amount may sit on the line below its label.
TOTAL_PATTERN = r'{labels}\s*[:\-]?\s*' + LABELED_AMOUNT_SHAPE

STORE_CAPS = r"^[A-Z0-9 '&.\-]{3,40}$"
STORE_ALPHA_RUN = r'[^\W\d_]{3,}'

QUANTITY_PRICE_ITEM = (
    r'^(?P<name>.{1,60}?)[ \t]+(?P<qty>\d{1,3})[ \t]*[xX@][ \t]*'
    r'(?:' + CURRENCY + r'[ \t]*)?(?P<price>' + PRICE_NUMBER + r')[ \t]*$'
)

CODED_ITEM = (
    r'^(?P<code>\d{3,12})[ \t]+(?P<name>.{2,40}?)'
    r'(?:[ \t]+(?:' + CURRENCY + r'[ \t]*)?(?P<price>' + PRICE_NUMBER + r'))?[ \t]*$'
)


def render_labels(labels: Iterable[str], bounded: bool = True) -> str:
    """
    Render a label vocabulary as a regex alternation.

    Longer phrases come first so "grand total" wins over "total". Spaces inside
    a phrase match any run of blanks. With ``bounded`` a phrase starting with a
    letter or digit must not follow one, and a phrase ending with a letter must
    not be followed by one ("total" does not fire inside "Subtotal").

    Examples:
        >>> render_labels(['inv', 'invoice no'], bounded=False)
        '(?:invoice[ \\\\t]*no|inv)'
    """
    phrases = sorted(
        {' '.join(label.split()) for label in labels if label and label.strip()},
        key=lambda phrase: (-len(phrase), phrase),
    )
    if not phrases:
        raise PatternConfigError("label vocabulary is empty")

    alternatives = []
    for phrase in phrases:
        body = r'[ \t]*'.join(re.escape(word) for word in phrase.split(' '))
        if bounded:
            if phrase[0].isalnum():
                body = r'(?<![^\W_])' + body
            if phrase[-1].isalpha():
                body += r'(?![^\W\d_])'
        alternatives.append(body)
    return '(?:' + '|'.join(alternatives) + ')'


@dataclass(frozen=True)
class PatternSpec:
    """A named regex pattern with example and notes for documentation."""
    name: str
    pattern: str
    example: str
    notes: Optional[str] = None
    labels: Tuple[str, ...] = ()
    bounded_labels: bool = True
    group: Union[int, str] = 1  # capture rule: which group holds the value
    flags: int = re.IGNORECASE
    compiled: re.Pattern = field(default=None, init=False, compare=False, repr=False)

    def __post_init__(self):
        pattern = self.pattern
        if '{labels}' in pattern:
            if not self.labels:
                raise PatternConfigError(f"{self.name}: pattern uses {{labels}} but has no vocabulary")
            pattern = pattern.replace('{labels}', render_labels(self.labels, bounded=self.bounded_labels))

        try:
            compiled = re.compile(pattern, self.flags)
        except re.error as exc:
            raise PatternConfigError(f"{self.name}: invalid pattern: {exc}") from exc

        if isinstance(self.group, str):
            if self.group not in compiled.groupindex:
                raise PatternConfigError(f"{self.name}: no capture group named {self.group!r}")
        elif self.group > compiled.groups:
            raise PatternConfigError(
                f"{self.name}: capture group {self.group} requested, pattern has {compiled.groups}"
            )

        object.__setattr__(self, 'compiled', compiled)

    def capture(self, match: re.Match) -> str:
        """Apply the capture rule to a match."""
        return match.group(self.group)
