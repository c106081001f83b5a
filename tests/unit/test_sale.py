"""
Unit tests for the Sale aggregate.
"""

import pytest
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from sales_backend.domain import Sale, SaleItem, SaleStatus
from sales_backend.exceptions import InvalidQuantityError


class TestSaleCreation:
    """Tests for a new Sale."""

    def test_defaults(self):
        sale = Sale()

        assert isinstance(sale.id, uuid.UUID)
        assert sale.status == SaleStatus.ACTIVE
        assert sale.items == []
        assert sale.total_amount == Decimal('0')
        assert sale.created_at is not None
        assert sale.sale_date is not None
        assert sale.updated_at is None

    def test_each_sale_gets_its_own_id(self):
        assert Sale().id != Sale().id


class TestAddItem:
    """Tests for Sale.add_item."""

    def test_add_item_sets_back_reference_and_discount(self, sale_factory, item_factory):
        sale = sale_factory()
        item = item_factory(quantity=5, unit_price='100')

        sale.add_item(item)

        assert item.sale_id == sale.id
        assert item.discount == Decimal('10')
        assert sale.items == [item]
        assert sale.get_item(item.id) is item
        assert sale.updated_at is not None

    def test_add_none_is_an_argument_error(self, sale_factory):
        sale = sale_factory()

        with pytest.raises(ValueError):
            sale.add_item(None)
        assert sale.items == []

    def test_add_item_above_ceiling_fails(self, sale_factory, item_factory):
        sale = sale_factory()

        with pytest.raises(InvalidQuantityError):
            sale.add_item(item_factory(quantity=21))
        assert sale.items == []

    def test_no_limit_on_distinct_items(self, sale_factory, item_factory):
        sale = sale_factory()
        for i in range(50):
            sale.add_item(item_factory(product_id=f'P-{i}'))

        assert len(sale.items) == 50


class TestTotals:
    """Tests for Sale.total_amount."""

    def test_total_is_sum_of_item_totals(self, sale_factory, item_factory):
        sale = sale_factory()
        sale.add_item(item_factory(product_id='P-1', quantity=3, unit_price='10'))
        sale.add_item(item_factory(product_id='P-2', quantity=4, unit_price='10'))

        assert [i.total_amount for i in sale.items] == [Decimal('30'), Decimal('36')]
        assert sale.total_amount == Decimal('66.00')

    def test_cancelled_items_still_count_in_total(self, sale_factory, item_factory):
        sale = sale_factory()
        first = item_factory(product_id='P-1', quantity=3, unit_price='10')
        sale.add_item(first)
        sale.add_item(item_factory(product_id='P-2', quantity=4, unit_price='10'))

        sale.cancel_item(first.id)

        assert first.is_cancelled is True
        assert sale.total_amount == Decimal('66.00')

    def test_removed_items_leave_the_total(self, sale_factory, item_factory):
        sale = sale_factory()
        first = item_factory(product_id='P-1', quantity=3, unit_price='10')
        sale.add_item(first)
        sale.add_item(item_factory(product_id='P-2', quantity=4, unit_price='10'))

        sale.remove_item(first.id)

        assert sale.total_amount == Decimal('36')


class TestRemoveItem:
    """Tests for Sale.remove_item."""

    def test_remove_existing_item(self, sale_factory, item_factory):
        sale = sale_factory()
        item = item_factory()
        sale.add_item(item)
        sale.updated_at = None

        sale.remove_item(item.id)

        assert sale.items == []
        assert sale.updated_at is not None

    def test_remove_unknown_item_is_a_no_op(self, sale_factory, item_factory):
        sale = sale_factory()
        sale.add_item(item_factory())
        sale.updated_at = None

        sale.remove_item(uuid.uuid4())

        assert len(sale.items) == 1
        assert sale.updated_at is None


class TestCancellation:
    """Tests for Sale.cancel and Sale.cancel_item."""

    def test_cancel_marks_sale_cancelled(self, sale_factory, item_factory):
        sale = sale_factory()
        item = item_factory()
        sale.add_item(item)

        sale.cancel()

        assert sale.status == SaleStatus.CANCELLED
        assert sale.is_cancelled is True
        assert sale.updated_at is not None
        # Item flags are independent from the sale status
        assert item.is_cancelled is False

    def test_cancel_is_monotonic(self, sale_factory):
        sale = sale_factory()
        sale.cancel()
        sale.cancel()

        assert sale.status == SaleStatus.CANCELLED

    def test_cancel_item_flips_only_that_item(self, sale_factory, item_factory):
        sale = sale_factory()
        first, second = item_factory(product_id='P-1'), item_factory(product_id='P-2')
        sale.add_item(first)
        sale.add_item(second)
        sale.updated_at = None

        sale.cancel_item(second.id)

        assert first.is_cancelled is False
        assert second.is_cancelled is True
        assert sale.status == SaleStatus.ACTIVE
        assert sale.updated_at is not None

    def test_cancel_unknown_item_changes_nothing(self, sale_factory, item_factory):
        sale = sale_factory()
        item = item_factory()
        sale.add_item(item)
        sale.updated_at = None

        assert sale.cancel_item(uuid.uuid4()) is None

        assert sale.items == [item]
        assert item.is_cancelled is False
        assert sale.status == SaleStatus.ACTIVE
        assert sale.updated_at is None


class TestSaleValidation:
    """Tests for Sale.validate()."""

    def test_sale_without_items_is_invalid(self, sale_factory):
        result = sale_factory().validate()

        assert result.is_valid is False
        assert [(e.error, e.detail) for e in result.errors] == [
            ('items', 'Sale must contain at least one item')
        ]

    def test_one_valid_item_makes_it_valid(self, sale_factory, item_factory):
        sale = sale_factory()
        sale.add_item(item_factory(quantity=1, unit_price='10'))

        assert sale.validate().is_valid is True

    def test_header_fields_are_required(self, item_factory):
        sale = Sale(sale_number='', customer_id='', customer_name=' ', branch_id='', branch_name='')
        sale.sale_date = None
        sale.add_item(item_factory())

        fields = [e.error for e in sale.validate().errors]
        assert fields == [
            'sale_number', 'customer_id', 'customer_name', 'branch_id', 'branch_name', 'sale_date'
        ]

    def test_item_errors_are_concatenated(self, sale_factory):
        sale = sale_factory()
        sale.add_item(SaleItem(product_id='P-1', product_name='A', quantity=0, unit_price='10'))
        sale.add_item(SaleItem(product_id='', product_name='B', quantity=2, unit_price='-1'))

        result = sale.validate()
        assert result.as_pairs() == [
            ('quantity', 'Quantity must be greater than 0'),
            ('product_id', 'Product ID is required'),
            ('unit_price', 'Unit price must be greater than 0'),
        ]

    def test_validate_never_raises(self):
        sale = Sale()
        sale.sale_date = None

        result = sale.validate()
        assert result.is_valid is False
        assert len(result.errors) == 7

    def test_keeps_given_sale_date(self, sale_factory):
        sale = sale_factory(sale_date=datetime(2023, 1, 2, tzinfo=timezone.utc))

        assert sale.sale_date == datetime(2023, 1, 2, tzinfo=timezone.utc)
