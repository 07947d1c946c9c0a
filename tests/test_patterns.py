"""
Tests for the declarative pattern table and the line classifier.
"""

import re

import pytest

from receiptparser.utils.classifier import looks_like_amount, looks_like_date, looks_like_label
from receiptparser.utils.patterns import (
    AMOUNT_SHAPE,
    DATE_SHAPE,
    INVOICE_LABELS,
    INVOICE_PATTERN,
    TOTAL_LABELS,
    TOTAL_PATTERN,
    PatternConfigError,
    PatternSpec,
    render_labels,
)


class TestPatternSpec:

    def test_compiles_on_construction(self):
        spec = PatternSpec(name='digits', pattern=r'(\d+)', example='42')
        assert spec.capture(spec.compiled.search('abc 42')) == '42'

    def test_invalid_regex(self):
        with pytest.raises(PatternConfigError):
            PatternSpec(name='broken', pattern=r'(unclosed', example='')

    def test_config_error_is_value_error(self):
        assert issubclass(PatternConfigError, ValueError)

    def test_labels_placeholder_requires_vocabulary(self):
        with pytest.raises(PatternConfigError):
            PatternSpec(name='empty', pattern='{labels}', example='', group=0)

    def test_missing_capture_group(self):
        with pytest.raises(PatternConfigError):
            PatternSpec(name='no_group', pattern='abc', example='abc')

    def test_missing_named_group(self):
        with pytest.raises(PatternConfigError):
            PatternSpec(name='wrong_name', pattern=r'(?P<a>a)', example='a', group='b')

    def test_frozen(self):
        spec = PatternSpec(name='digits', pattern=r'(\d+)', example='42')
        with pytest.raises(AttributeError):
            spec.name = 'other'


class TestRenderLabels:

    def test_longest_phrase_first(self):
        spec = PatternSpec(name='total', pattern='{labels}', example='', labels=TOTAL_LABELS, group=0)
        assert spec.compiled.search('GRAND TOTAL 5.00').group(0) == 'GRAND TOTAL'

    def test_inner_space_matches_any_blank_run(self):
        spec = PatternSpec(name='due', pattern='{labels}', example='', labels=('amount due',), group=0)
        assert spec.compiled.search('Amount \t Due')
        assert spec.compiled.search('AmountDue')

    def test_bounded_labels_skip_embedded_words(self):
        spec = PatternSpec(name='total', pattern='{labels}', example='', labels=('total',), group=0)
        assert spec.compiled.search('Subtotal') is None
        assert spec.compiled.search('Totals') is None
        assert spec.compiled.search('Sub total')

    def test_unbounded_labels_match_substrings(self):
        spec = PatternSpec(
            name='total', pattern='{labels}', example='', labels=('total',), bounded_labels=False, group=0,
        )
        assert spec.compiled.search('Subtotal')

    def test_punctuation_is_literal(self):
        rendered = render_labels(['inv. no'], bounded=False)
        assert re.search(rendered, 'inv. no')
        assert re.search(rendered, 'invx no') is None

    def test_empty_vocabulary(self):
        with pytest.raises(PatternConfigError):
            render_labels(['', '  '])


class TestShapes:

    def test_amount_shape_requires_two_decimals(self):
        found = [m.group(1) for m in re.finditer(AMOUNT_SHAPE, 'Qty 3 Price $1,234.56 Tax 7,50 Pts 12.5')]
        assert found == ['1,234.56', '7,50']

    def test_amount_shape_ignores_dotted_dates(self):
        assert re.search(AMOUNT_SHAPE, 'Date 12.03.2024') is None

    @pytest.mark.parametrize('text,expected', [
        ('Date: 03/04/2024 10:22', '03/04/2024'),
        ('2024-03-04T10:15:00', '2024-03-04'),
        ('Paid Mar 4, 2024', 'Mar 4, 2024'),
        ('DATE 5 JAN 2024', '5 JAN 2024'),
        ('Datum 12 März 2024', '12 März 2024'),
    ])
    def test_date_shape(self, text, expected):
        assert re.search(DATE_SHAPE, text).group(1) == expected

    def test_invoice_pattern(self):
        spec = PatternSpec(name='invoice', pattern=INVOICE_PATTERN, example='', labels=INVOICE_LABELS)
        assert spec.capture(spec.compiled.search('Invoice No: INV-2024-001')) == 'INV-2024-001'

    def test_total_pattern(self):
        spec = PatternSpec(name='total', pattern=TOTAL_PATTERN, example='', labels=TOTAL_LABELS)
        assert spec.capture(spec.compiled.search('Balance Due: $1.234,56')) == '1.234,56'


class TestLineClassifier:

    @pytest.mark.parametrize('line', ['Date: 03/04/2024', '2024-03-04', 'Mar 4, 2024', '4 Mar 2024', '31.12.23'])
    def test_looks_like_date(self, line):
        assert looks_like_date(line)

    @pytest.mark.parametrize('line', ['Corner Bakery', 'Milk 2 x 3.49', '12.50', ''])
    def test_not_a_date(self, line):
        assert not looks_like_date(line)

    @pytest.mark.parametrize('line', ['$1,234.56', '12.50', 'Tip 3,00', '€ 7.68'])
    def test_looks_like_amount(self, line):
        assert looks_like_amount(line)

    @pytest.mark.parametrize('line', ['Qty 3', '03/04/2024', '12.03.2024', 'Corner Bakery', ''])
    def test_not_an_amount(self, line):
        assert not looks_like_amount(line)

    @pytest.mark.parametrize('line', ['INVOICE #5', 'Subtotal', 'Sales Tax', 'QTY', 'Items sold', 'Amount'])
    def test_looks_like_label(self, line):
        assert looks_like_label(line)

    @pytest.mark.parametrize('line', ['Corner Bakery', 'WALMART SUPERCENTER', ''])
    def test_not_a_label(self, line):
        assert not looks_like_label(line)
