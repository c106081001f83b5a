"""
Integration tests for the SQLAlchemy sale repository.
"""

import pytest
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sales_backend.domain import SaleStatus
from sales_backend.models import SaleRecord, SaleItemRecord
from sales_backend.repositories import SaleRepository


@pytest.fixture
def repository(session):
    return SaleRepository(session)


@pytest.fixture
def stored_sale(session, repository, sale_factory, item_factory):
    sale = sale_factory('S-100')
    sale.add_item(item_factory(product_id='P-1', quantity=3, unit_price='10'))
    sale.add_item(item_factory(product_id='P-2', quantity=4, unit_price='10'))
    repository.create(sale)
    session.commit()
    return sale


class TestCreateAndRead:

    def test_round_trip_keeps_aggregate_state(self, repository, stored_sale):
        loaded = repository.get_by_id(stored_sale.id)

        assert loaded is not stored_sale
        assert loaded.id == stored_sale.id
        assert loaded.sale_number == 'S-100'
        assert loaded.sale_date == datetime(2024, 5, 10, 14, 30, tzinfo=timezone.utc)
        assert loaded.status == SaleStatus.ACTIVE
        assert [i.product_id for i in loaded.items] == ['P-1', 'P-2']
        assert [i.discount for i in loaded.items] == [Decimal('0'), Decimal('10')]
        assert all(i.sale_id == loaded.id for i in loaded.items)
        assert loaded.total_amount == Decimal('66.00')

    def test_get_by_id_accepts_strings(self, repository, stored_sale):
        assert repository.get_by_id(str(stored_sale.id)).id == stored_sale.id

    @pytest.mark.parametrize('missing', [uuid.uuid4(), 'not-a-uuid', None])
    def test_missing_sale_returns_none(self, repository, stored_sale, missing):
        assert repository.get_by_id(missing) is None

    def test_get_by_sale_number(self, repository, stored_sale):
        assert repository.get_by_sale_number('S-100').id == stored_sale.id
        assert repository.get_by_sale_number('S-404') is None

    def test_sale_number_is_unique(self, session, repository, stored_sale, sale_factory, item_factory):
        duplicate = sale_factory('S-100')
        duplicate.add_item(item_factory())

        with pytest.raises(IntegrityError):
            repository.create(duplicate)
            session.commit()


class TestQueries:

    @pytest.fixture
    def sales(self, session, repository, sale_factory, item_factory):
        created = []
        for n, (customer, branch, day) in enumerate([
            ('C-1', 'B-1', 1), ('C-1', 'B-2', 2), ('C-2', 'B-1', 3), ('C-3', 'B-3', 4)
        ]):
            sale = sale_factory(
                f'S-{n}', customer_id=customer, branch_id=branch,
                sale_date=datetime(2024, 1, day, tzinfo=timezone.utc)
            )
            sale.add_item(item_factory())
            repository.create(sale)
            created.append(sale)
        session.commit()
        return created

    def test_by_customer(self, repository, sales):
        assert [s.sale_number for s in repository.get_by_customer_id('C-1')] == ['S-1', 'S-0']
        assert repository.get_by_customer_id('C-9') == []

    def test_by_branch(self, repository, sales):
        assert [s.sale_number for s in repository.get_by_branch_id('B-1')] == ['S-2', 'S-0']

    def test_pages_newest_first(self, repository, sales):
        assert [s.sale_number for s in repository.get_all(1, 3)] == ['S-3', 'S-2', 'S-1']
        assert [s.sale_number for s in repository.get_all(2, 3)] == ['S-0']
        assert repository.get_all(3, 3) == []

    def test_count(self, repository, sales):
        assert repository.get_total_count() == 4
        assert len(repository.list_all()) == 4


class TestUpdateAndDelete:

    def test_update_persists_cancellations(self, session, repository, stored_sale):
        item = stored_sale.items[0]
        stored_sale.cancel_item(item.id)
        stored_sale.cancel()

        assert repository.update(stored_sale) is stored_sale
        session.commit()

        loaded = repository.get_by_id(stored_sale.id)
        assert loaded.status == SaleStatus.CANCELLED
        assert loaded.get_item(item.id).is_cancelled is True
        assert loaded.updated_at is not None

    def test_update_replaces_item_set(self, session, repository, stored_sale, item_factory):
        kept, dropped = stored_sale.items
        stored_sale.remove_item(dropped.id)
        kept.quantity = 12
        stored_sale.add_item(kept)
        stored_sale.add_item(item_factory(product_id='P-3', quantity=1, unit_price='5'))

        repository.update(stored_sale)
        session.commit()

        loaded = repository.get_by_id(stored_sale.id)
        assert [i.product_id for i in loaded.items] == ['P-1', 'P-3']
        assert loaded.get_item(kept.id).discount == Decimal('20')
        assert session.query(SaleItemRecord).filter_by(id=str(dropped.id)).first() is None

    def test_update_of_unknown_sale_returns_none(self, repository, sale_factory):
        assert repository.update(sale_factory('S-new')) is None

    def test_delete_cascades_to_items(self, session, repository, stored_sale):
        assert repository.delete(stored_sale.id) is True
        session.commit()

        assert repository.get_by_id(stored_sale.id) is None
        assert session.query(SaleRecord).count() == 0
        assert session.query(SaleItemRecord).count() == 0

    def test_foreign_keys_are_enforced(self, session):
        assert session.execute(text('PRAGMA foreign_keys')).scalar() == 1

    def test_delete_missing_returns_false(self, repository):
        assert repository.delete(uuid.uuid4()) is False
