import pytest
from datetime import datetime, timezone
from decimal import Decimal
import uuid

from sales_backend import create_app
from sales_backend.database import get_session, create_all, drop_all
from sales_backend.domain import Sale, SaleItem


class RecordingPublisher:
    """Publisher double that keeps every event instead of sending it."""

    def __init__(self):
        self.events = []

    def publish(self, event, topic=None):
        self.events.append(event)
        return str(uuid.uuid4())

    def types(self):
        return [e.event_type() for e in self.events]


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function')
def session(app):
    """Create database session for testing on fresh tables."""
    with app.app_context():
        create_all()
        session = get_session()
        yield session
        session.rollback()
        session.remove()
        drop_all()


@pytest.fixture(scope='function')
def publisher():
    return RecordingPublisher()


@pytest.fixture(scope='function')
def cli_runner(app):
    return app.test_cli_runner()


def make_item(product_id='P-1', product_name='Beer 600ml', quantity=1, unit_price='10.00'):
    return SaleItem(
        product_id=product_id,
        product_name=product_name,
        quantity=quantity,
        unit_price=Decimal(unit_price)
    )


def make_sale(sale_number='S-0001', **overrides):
    fields = dict(
        sale_number=sale_number,
        sale_date=datetime(2024, 5, 10, 14, 30, tzinfo=timezone.utc),
        customer_id='C-1',
        customer_name='Bar do Zé',
        branch_id='B-1',
        branch_name='Centro',
    )
    fields.update(overrides)
    return Sale(**fields)


def sale_payload(sale_number='S-0001', items=None, **overrides):
    data = {
        'sale_number': sale_number,
        'sale_date': '2024-05-10T14:30:00Z',
        'customer_id': 'C-1',
        'customer_name': 'Bar do Zé',
        'branch_id': 'B-1',
        'branch_name': 'Centro',
        'items': items if items is not None else [
            {'product_id': 'P-1', 'product_name': 'Beer 600ml', 'quantity': 3, 'unit_price': '10.00'},
            {'product_id': 'P-2', 'product_name': 'Soda 2L', 'quantity': 4, 'unit_price': '10.00'},
        ],
    }
    data.update(overrides)
    return data


@pytest.fixture(scope='function')
def sale_factory():
    return make_sale


@pytest.fixture(scope='function')
def item_factory():
    return make_item


@pytest.fixture(scope='function')
def payload_factory():
    return sale_payload
