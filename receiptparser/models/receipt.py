"""
Pydantic models for extracted receipts.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import date
from decimal import Decimal

from ..utils.money import TWO_PLACES, format_amount, parse_amount


class LineItem(BaseModel):
    """A purchased item recovered from one receipt line."""
    name: str
    code: Optional[str] = None  # numeric item/SKU code, coded lines only
    quantity: int = Field(default=1, ge=1)
    price: Decimal = Field(default=Decimal('0.00'), ge=0)

    class Config:
        frozen = True

    @field_validator('name')
    @classmethod
    def _name_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError('item name must not be empty')
        return value

    @field_validator('price')
    @classmethod
    def _two_places(cls, value: Decimal) -> Decimal:
        return value.quantize(TWO_PLACES)


class ReceiptRecord(BaseModel):
    """Structured receipt produced by one extraction pass."""
    merchant_name: Optional[str] = None
    invoice_number: Optional[str] = None
    purchase_date: Optional[date] = None
    total_amount: Optional[Decimal] = Field(default=None, ge=0)
    raw_text: str = ""  # input lines joined with "\n"
    items: List[LineItem] = Field(default_factory=list)

    class Config:
        frozen = True


class ReceiptDraft(BaseModel):
    """
    Editable receipt shown for review before it is saved.

    Absent fields become blank text so they can be filled in by hand, and a
    missing purchase date defaults to today. The total is kept as text with two
    fraction digits and only parsed back when the draft is committed.
    """
    store_name: str = ""
    invoice_number: str = ""
    purchase_date: date
    total_text: str = ""
    raw_text: str = ""
    items: List[LineItem] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: ReceiptRecord, today: Optional[date] = None) -> "ReceiptDraft":
        total_text = format_amount(record.total_amount) if record.total_amount is not None else ""
        return cls(
            store_name=record.merchant_name or "",
            invoice_number=record.invoice_number or "",
            purchase_date=record.purchase_date or today or date.today(),
            total_text=total_text,
            raw_text=record.raw_text,
            items=list(record.items),
        )

    def can_commit(self, has_image: bool = False) -> bool:
        """A draft is saveable once it has a store name or an attached image."""
        return bool(self.store_name.strip()) or has_image

    def commit(self, has_image: bool = False) -> Dict[str, Any]:
        """
        Build the payload handed to storage.

        A blank or unreadable total is saved as 0.00.

        Raises:
            ValueError: if the draft has neither a store name nor an image
        """
        if not self.can_commit(has_image):
            raise ValueError("receipt needs a store name or an image before it can be saved")

        total = parse_amount(self.total_text)
        return {
            'store_name': self.store_name.strip(),
            'invoice_number': self.invoice_number.strip() or None,
            'purchase_date': self.purchase_date,
            'total': total if total is not None else Decimal('0.00'),
            'raw_text': self.raw_text,
            'items': [item.model_dump() for item in self.items],
        }
