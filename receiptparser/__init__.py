"""
Structured field extraction for OCR'd receipts.

    >>> from receiptparser import parse_receipt
    >>> record = parse_receipt(["CORNER MARKET", "Date: 03/04/2024", "Total: 7.68"])
    >>> record.total_amount
    Decimal('7.68')
"""

from .config import Settings, configure_logging, settings
from .models.receipt import LineItem, ReceiptDraft, ReceiptRecord
from .services.parser import ReceiptParser, parse_receipt
from .utils.classifier import looks_like_amount, looks_like_date, looks_like_label
from .utils.dates import parse_date
from .utils.money import format_amount, parse_amount
from .utils.patterns import PatternConfigError, PatternSpec

__all__ = [
    'Settings', 'configure_logging', 'settings',
    'LineItem', 'ReceiptDraft', 'ReceiptRecord',
    'ReceiptParser', 'parse_receipt',
    'looks_like_amount', 'looks_like_date', 'looks_like_label',
    'parse_date', 'format_amount', 'parse_amount',
    'PatternConfigError', 'PatternSpec',
]
