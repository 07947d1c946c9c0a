"""
Receipt parser service for extracting structured data from OCR lines.

Each field has its own extractor with an ordered list of tiers; the first tier
that yields a parseable value wins and later tiers are never consulted. No
extractor raises on bad input: a missing or unreadable field comes back as
None (or an empty item list) and the other fields are unaffected.
"""

import re
import logging
from typing import Any, Dict, List, Optional, Sequence, Union
from datetime import date
from decimal import Decimal

from ..config import Settings, settings as default_settings
from ..models.receipt import LineItem, ReceiptRecord
from ..utils.classifier import looks_like_amount, looks_like_date, looks_like_label
from ..utils.dates import parse_date
from ..utils.money import parse_amount
from ..utils.patterns import (
    AMOUNT_SHAPE,
    CODED_ITEM,
    DATE_LINE_LABELS,
    DATE_SHAPE,
    INVOICE_LABELS,
    INVOICE_PATTERN,
    PatternSpec,
    QUANTITY_PRICE_ITEM,
    STORE_ALPHA_RUN,
    STORE_CAPS,
    TOTAL_LABELS,
    TOTAL_PATTERN,
)

logger = logging.getLogger(__name__)

_SCALAR_FIELDS = ('merchant_name', 'invoice_number', 'purchase_date', 'total_amount')


class ReceiptParser:
    """Service for parsing OCR receipt lines into a ReceiptRecord."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize parser with regex patterns."""
        self.settings = settings or default_settings
        self._init_patterns()

    def _init_patterns(self):
        """Initialize the pattern table. Raises PatternConfigError on a bad entry."""

        self.invoice_pattern = PatternSpec(
            name='labeled_invoice',
            pattern=INVOICE_PATTERN,
            example='Invoice No: INV-2024-001',
            notes='Invoice label followed by a 1-40 char identifier on the same line',
            labels=INVOICE_LABELS,
        )

        self.total_pattern = PatternSpec(
            name='labeled_total',
            pattern=TOTAL_PATTERN,
            example='Total: $7.68',
            notes='Total label followed by an amount, searched in the bottom lines',
            labels=TOTAL_LABELS,
        )

        self.max_amount_pattern = PatternSpec(
            name='max_amount',
            pattern=AMOUNT_SHAPE,
            example='45.00',
            notes='Any two-decimal amount; the largest one is taken as the total',
        )

        self.date_line_pattern = PatternSpec(
            name='date_label_line',
            pattern='{labels}',
            example='Purchase Date: 03/04/2024',
            notes='Line mentioning a date label (substring match)',
            labels=DATE_LINE_LABELS,
            bounded_labels=False,
            group=0,
        )

        self.date_pattern = PatternSpec(
            name='date_shape',
            pattern=DATE_SHAPE,
            example='Mar 4, 2024',
        )

        # Store name shapes, tried in order
        self.store_patterns = [
            PatternSpec(
                name='store_caps',
                pattern=STORE_CAPS,
                example="JOE'S MARKET",
                notes='Whole line of capitals, digits and store punctuation (3-40 chars)',
                group=0,
                flags=0,
            ),
            PatternSpec(
                name='store_alpha_run',
                pattern=STORE_ALPHA_RUN,
                example='Corner Bakery',
                notes='Any line with three letters in a row',
                group=0,
                flags=0,
            ),
        ]

        # Line item families, tried in order on every line
        self.item_patterns = [
            PatternSpec(
                name='quantity_price',
                pattern=QUANTITY_PRICE_ITEM,
                example='Milk 2 x 3.49',
                group='name',
                flags=0,
            ),
            PatternSpec(
                name='coded_item',
                pattern=CODED_ITEM,
                example='00123 Eggs 4.99',
                notes='Numeric code, name, optional price',
                group='name',
                flags=0,
            ),
        ]

    @staticmethod
    def _record_match(_debug, field: str, pattern_name: str):
        """Record which pattern produced a field."""
        if _debug is not None:
            _debug.setdefault('patterns_matched', {})[field] = pattern_name
        logger.debug("Field extracted", extra={'field': field, 'pattern': pattern_name})

    def extract_invoice_number(self, text: str, _debug=None) -> Optional[str]:
        """
        Extract the invoice number: the first labeled identifier in the text.

        Args:
            text: Full receipt text

        Returns:
            Identifier such as "INV-2024-001", or None
        """
        try:
            match = self.invoice_pattern.compiled.search(text or '')
            if not match:
                return None

            self._record_match(_debug, 'invoice_number', self.invoice_pattern.name)
            return self.invoice_pattern.capture(match).strip()

        except (re.error, ValueError):
            logger.warning("Error extracting invoice number", exc_info=True)
            return None

    def extract_total(self, lines: Sequence[str], _debug=None) -> Optional[Decimal]:
        """
        Extract the total amount.

        A labeled amount in the bottom TOTAL_SEARCH_WINDOW lines wins. Without
        one, the largest two-decimal amount anywhere on the receipt is used.

        Args:
            lines: Receipt lines in order

        Returns:
            Amount as Decimal or None
        """
        try:
            window = self.settings.TOTAL_SEARCH_WINDOW
            bottom = '\n'.join(lines[-window:])

            for match in self.total_pattern.compiled.finditer(bottom):
                amount = parse_amount(self.total_pattern.capture(match))
                if amount is not None:
                    self._record_match(_debug, 'total_amount', self.total_pattern.name)
                    return amount

            candidates: List[Decimal] = []
            for match in self.max_amount_pattern.compiled.finditer('\n'.join(lines)):
                amount = parse_amount(self.max_amount_pattern.capture(match))
                if amount is not None:
                    candidates.append(amount)

            if _debug is not None:
                _debug['total_candidates'] = [str(c) for c in candidates]

            if not candidates:
                return None

            self._record_match(_debug, 'total_amount', self.max_amount_pattern.name)
            return max(candidates)

        except (re.error, ValueError, ArithmeticError):
            logger.warning("Error extracting total", exc_info=True)
            return None

    def extract_date(self, lines: Sequence[str], _debug=None) -> Optional[date]:
        """
        Extract the purchase date.

        The first line mentioning a date label is tried first, using only the
        first date-shaped text on it. Otherwise every date-shaped substring of
        the receipt is tried in order.

        Args:
            lines: Receipt lines in order

        Returns:
            Date or None
        """
        try:
            locales = self.settings.DATE_LOCALES

            labeled_line = next(
                (line for line in lines if self.date_line_pattern.compiled.search(line)),
                None,
            )
            if labeled_line is not None:
                match = self.date_pattern.compiled.search(labeled_line)
                if match:
                    parsed = parse_date(self.date_pattern.capture(match), locales=locales)
                    if parsed:
                        self._record_match(_debug, 'purchase_date', self.date_line_pattern.name)
                        return parsed

            for match in self.date_pattern.compiled.finditer('\n'.join(lines)):
                parsed = parse_date(self.date_pattern.capture(match), locales=locales)
                if parsed:
                    self._record_match(_debug, 'purchase_date', self.date_pattern.name)
                    return parsed

            return None

        except (re.error, ValueError, ArithmeticError):
            logger.warning("Error extracting date", exc_info=True)
            return None

    def extract_merchant(self, lines: Sequence[str], _debug=None) -> Optional[str]:
        """
        Extract the store name from the top of the receipt.

        Lines that look like a date, an amount or a field label are skipped.
        If nothing in the top MERCHANT_SEARCH_WINDOW lines qualifies, the first
        non-empty line of the receipt is used as is.

        Args:
            lines: Receipt lines in order

        Returns:
            Trimmed store name or None
        """
        try:
            for line in lines[:self.settings.MERCHANT_SEARCH_WINDOW]:
                trimmed = line.strip()
                if not trimmed:
                    continue
                if looks_like_date(trimmed) or looks_like_amount(trimmed) or looks_like_label(trimmed):
                    continue

                for spec in self.store_patterns:
                    if spec.compiled.search(trimmed):
                        self._record_match(_debug, 'merchant_name', spec.name)
                        return trimmed

            fallback = next((line.strip() for line in lines if line.strip()), None)
            if fallback is not None:
                self._record_match(_debug, 'merchant_name', 'first_non_empty_line')
            return fallback

        except (re.error, ValueError):
            logger.warning("Error extracting merchant", exc_info=True)
            return None

    def _item_from_match(self, match: re.Match) -> Optional[LineItem]:
        groups = match.groupdict()
        name = (groups.get('name') or '').strip()
        if not name:
            return None

        quantity = 1
        if groups.get('qty'):
            quantity = max(int(groups['qty']), 1)

        price = parse_amount(groups.get('price') or '')

        return LineItem(
            name=name,
            code=groups.get('code'),
            quantity=quantity,
            price=price if price is not None else Decimal('0.00'),
        )

    def extract_items(self, text: str, _debug=None) -> List[LineItem]:
        """
        Extract line items in receipt order.

        Every line is checked against each item family in turn, so one line
        can produce an item from more than one family.

        Args:
            text: Full receipt text

        Returns:
            List of LineItem, possibly empty
        """
        items: List[LineItem] = []
        try:
            for line in (text or '').split('\n'):
                stripped = line.strip()
                if not stripped:
                    continue

                for spec in self.item_patterns:
                    match = spec.compiled.match(stripped)
                    if not match:
                        continue
                    item = self._item_from_match(match)
                    if item is not None:
                        items.append(item)
                        if _debug is not None:
                            _debug.setdefault('item_patterns', []).append(spec.name)

            if items:
                self._record_match(_debug, 'items', f'{len(items)}_lines')
            return items

        except (re.error, ValueError, ArithmeticError):
            logger.warning("Error extracting items", exc_info=True)
            return items

    def parse(self, lines: Union[Sequence[str], str], _debug: Optional[Dict[str, Any]] = None) -> ReceiptRecord:
        """
        Parse receipt lines and extract all available fields.

        Args:
            lines: OCR lines in reading order. A single string (such as a
                stored raw_text) is split into lines first.
            _debug: Optional dict that receives pattern provenance

        Returns:
            ReceiptRecord; fields that could not be found are None

        Raises:
            TypeError: if lines is None
        """
        if lines is None:
            raise TypeError("lines must be a sequence of strings, not None")
        if isinstance(lines, str):
            lines = lines.split('\n')
        lines = list(lines)

        if _debug is not None:
            _debug.setdefault('patterns_matched', {})
            _debug.setdefault('warnings', [])

        raw_text = '\n'.join(lines)
        logger.debug("Extracting receipt fields", extra={'line_count': len(lines)})

        record = ReceiptRecord(
            merchant_name=self.extract_merchant(lines, _debug=_debug),
            invoice_number=self.extract_invoice_number(raw_text, _debug=_debug),
            purchase_date=self.extract_date(lines, _debug=_debug),
            total_amount=self.extract_total(lines, _debug=_debug),
            raw_text=raw_text,
            items=self.extract_items(raw_text, _debug=_debug),
        )

        if _debug is not None:
            for field in _SCALAR_FIELDS:
                if getattr(record, field) is None:
                    _debug['warnings'].append(f'No {field} found')

        logger.debug(
            "Receipt assembled",
            extra={
                'fields_found': [f for f in _SCALAR_FIELDS if getattr(record, f) is not None],
                'item_count': len(record.items),
            },
        )
        return record


_default_parser: Optional[ReceiptParser] = None


def parse_receipt(lines: Union[Sequence[str], str]) -> ReceiptRecord:
    """Parse receipt lines with a shared parser built from the global settings."""
    global _default_parser
    if _default_parser is None:
        _default_parser = ReceiptParser()
    return _default_parser.parse(lines)
