"""
Tests for receipt models and the review draft hand-off.
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from receiptparser.models.receipt import LineItem, ReceiptDraft, ReceiptRecord


SCANNED = ReceiptRecord(
    merchant_name='CORNER MARKET',
    invoice_number='INV-7',
    purchase_date=date(2024, 3, 4),
    total_amount=Decimal('7.68'),
    raw_text='CORNER MARKET\nInvoice: INV-7\nDate: 03/04/2024\nMilk 2 x 3.49\nTotal: 7.68',
    items=[LineItem(name='Milk', quantity=2, price=Decimal('3.49'))],
)


class TestLineItem:

    def test_defaults(self):
        item = LineItem(name='Bread')
        assert item.code is None
        assert item.quantity == 1
        assert item.price == Decimal('0.00')

    def test_name_is_trimmed(self):
        assert LineItem(name='  Bread ').name == 'Bread'

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            LineItem(name='   ')

    def test_quantity_at_least_one(self):
        with pytest.raises(ValidationError):
            LineItem(name='Bread', quantity=0)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            LineItem(name='Bread', price=Decimal('-1.00'))

    def test_price_has_two_places(self):
        assert str(LineItem(name='Bread', price=Decimal('3.5')).price) == '3.50'


class TestReceiptRecord:

    def test_all_fields_optional_except_raw_text(self):
        record = ReceiptRecord()
        assert record.raw_text == ''
        assert record.items == []
        assert record.total_amount is None

    def test_immutable(self):
        with pytest.raises(ValidationError):
            SCANNED.merchant_name = 'OTHER'

    def test_negative_total_rejected(self):
        with pytest.raises(ValidationError):
            ReceiptRecord(total_amount=Decimal('-0.01'))


class TestReceiptDraft:

    def test_from_record(self):
        draft = ReceiptDraft.from_record(SCANNED)

        assert draft.store_name == 'CORNER MARKET'
        assert draft.invoice_number == 'INV-7'
        assert draft.purchase_date == date(2024, 3, 4)
        assert draft.total_text == '7.68'
        assert draft.raw_text == SCANNED.raw_text
        assert draft.items == SCANNED.items

    def test_absent_fields_become_blank(self):
        draft = ReceiptDraft.from_record(ReceiptRecord(raw_text='???'), today=date(2025, 1, 2))

        assert draft.store_name == ''
        assert draft.invoice_number == ''
        assert draft.total_text == ''
        assert draft.purchase_date == date(2025, 1, 2)

    def test_total_text_has_two_places(self):
        draft = ReceiptDraft.from_record(ReceiptRecord(total_amount=Decimal('12')), today=date(2025, 1, 2))
        assert draft.total_text == '12.00'

    def test_edits_do_not_touch_record(self):
        draft = ReceiptDraft.from_record(SCANNED)
        draft.store_name = 'Corner Market Ltd'
        assert SCANNED.merchant_name == 'CORNER MARKET'

    def test_commit_payload(self):
        draft = ReceiptDraft.from_record(SCANNED)
        draft.total_text = '1.234,56'
        payload = draft.commit()

        assert payload['store_name'] == 'CORNER MARKET'
        assert payload['invoice_number'] == 'INV-7'
        assert payload['purchase_date'] == date(2024, 3, 4)
        assert payload['total'] == Decimal('1234.56')
        assert payload['items'] == [{'name': 'Milk', 'code': None, 'quantity': 2, 'price': Decimal('3.49')}]

    @pytest.mark.parametrize('total_text', ['', 'abc', '   '])
    def test_unreadable_total_saved_as_zero(self, total_text):
        draft = ReceiptDraft.from_record(SCANNED)
        draft.total_text = total_text
        assert draft.commit()['total'] == Decimal('0.00')

    @pytest.mark.parametrize('total_text', ['12.5', '12,5'])
    def test_one_decimal_total(self, total_text):
        draft = ReceiptDraft.from_record(SCANNED)
        draft.total_text = total_text
        assert draft.commit()['total'] == Decimal('12.50')

    def test_blank_invoice_saved_as_none(self):
        draft = ReceiptDraft.from_record(SCANNED)
        draft.invoice_number = '  '
        assert draft.commit()['invoice_number'] is None

    def test_store_name_or_image_required(self):
        draft = ReceiptDraft.from_record(ReceiptRecord(), today=date(2025, 1, 2))

        assert not draft.can_commit()
        assert draft.can_commit(has_image=True)
        with pytest.raises(ValueError):
            draft.commit()
        assert draft.commit(has_image=True)['total'] == Decimal('0.00')
