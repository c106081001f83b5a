"""
Sale repository over SQLAlchemy.

Maps ``SaleRecord``/``SaleItemRecord`` rows to the ``Sale`` aggregate and
back. Lookups that find nothing return ``None`` (or ``False`` for delete);
they never raise.
"""
import logging
import uuid
from datetime import timezone
from typing import List, Optional, Union

from sales_backend.domain import Sale, SaleItem
from sales_backend.models import SaleRecord, SaleItemRecord

logger = logging.getLogger(__name__)

IdLike = Union[uuid.UUID, str]


def _as_uuid(value: IdLike) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def _aware(value):
    """SQLite drops tzinfo; stored datetimes are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_domain(record: SaleRecord) -> Sale:
    sale = Sale(
        id=uuid.UUID(record.id),
        sale_number=record.sale_number,
        sale_date=_aware(record.sale_date),
        customer_id=record.customer_id,
        customer_name=record.customer_name,
        branch_id=record.branch_id,
        branch_name=record.branch_name,
        status=record.status,
        created_at=_aware(record.created_at),
        updated_at=_aware(record.updated_at),
    )
    for row in record.items:
        sale.attach_item(SaleItem(
            id=uuid.UUID(row.id),
            product_id=row.product_id,
            product_name=row.product_name,
            quantity=row.quantity,
            unit_price=row.unit_price,
            discount=row.discount,
            is_cancelled=row.is_cancelled,
        ))
    return sale


def _copy_header(sale: Sale, record: SaleRecord) -> None:
    record.sale_number = sale.sale_number
    record.sale_date = sale.sale_date
    record.customer_id = sale.customer_id
    record.customer_name = sale.customer_name
    record.branch_id = sale.branch_id
    record.branch_name = sale.branch_name
    record.status = sale.status
    record.created_at = sale.created_at
    record.updated_at = sale.updated_at


def _item_record(sale: Sale, item: SaleItem, position: int) -> SaleItemRecord:
    return SaleItemRecord(
        id=str(item.id),
        sale_id=str(sale.id),
        position=position,
        product_id=item.product_id,
        product_name=item.product_name,
        quantity=item.quantity,
        unit_price=item.unit_price,
        discount=item.discount,
        is_cancelled=item.is_cancelled,
    )


class SaleRepository:
    """Persistence for the Sale aggregate. The caller owns commit/rollback."""

    def __init__(self, session):
        self.session = session

    def _get_record(self, sale_id: IdLike) -> Optional[SaleRecord]:
        key = _as_uuid(sale_id)
        if key is None:
            return None
        return self.session.get(SaleRecord, str(key))

    def get_by_id(self, sale_id: IdLike) -> Optional[Sale]:
        record = self._get_record(sale_id)
        return to_domain(record) if record else None

    def get_by_sale_number(self, sale_number: str) -> Optional[Sale]:
        record = self.session.query(SaleRecord).filter(
            SaleRecord.sale_number == sale_number
        ).first()
        return to_domain(record) if record else None

    def get_by_customer_id(self, customer_id: str) -> List[Sale]:
        records = self.session.query(SaleRecord).filter(
            SaleRecord.customer_id == customer_id
        ).order_by(SaleRecord.sale_date.desc()).all()
        return [to_domain(r) for r in records]

    def get_by_branch_id(self, branch_id: str) -> List[Sale]:
        records = self.session.query(SaleRecord).filter(
            SaleRecord.branch_id == branch_id
        ).order_by(SaleRecord.sale_date.desc()).all()
        return [to_domain(r) for r in records]

    def get_all(self, page: int = 1, size: int = 10) -> List[Sale]:
        """Return one page (1-based) of sales, newest sale date first."""
        records = self.session.query(SaleRecord).order_by(
            SaleRecord.sale_date.desc(), SaleRecord.sale_number
        ).offset((page - 1) * size).limit(size).all()
        return [to_domain(r) for r in records]

    def list_all(self) -> List[Sale]:
        records = self.session.query(SaleRecord).order_by(SaleRecord.sale_date.desc()).all()
        return [to_domain(r) for r in records]

    def get_total_count(self) -> int:
        return self.session.query(SaleRecord).count()

    def create(self, sale: Sale) -> Sale:
        record = SaleRecord(id=str(sale.id))
        _copy_header(sale, record)
        record.items = [_item_record(sale, item, pos) for pos, item in enumerate(sale.items)]
        self.session.add(record)
        self.session.flush()
        logger.info(f"Sale {sale.sale_number} stored with {len(sale.items)} item(s)")
        return sale

    def update(self, sale: Sale) -> Optional[Sale]:
        """Overwrite the stored header and item set with the aggregate's state."""
        record = self._get_record(sale.id)
        if record is None:
            return None

        _copy_header(sale, record)

        existing = {row.id: row for row in record.items}
        rows = []
        for pos, item in enumerate(sale.items):
            row = existing.get(str(item.id))
            if row is None:
                row = _item_record(sale, item, pos)
            else:
                row.position = pos
                row.product_id = item.product_id
                row.product_name = item.product_name
                row.quantity = item.quantity
                row.unit_price = item.unit_price
                row.discount = item.discount
                row.is_cancelled = item.is_cancelled
            rows.append(row)
        # delete-orphan removes rows no longer in the aggregate
        record.items = rows
        self.session.flush()
        return sale

    def delete(self, sale_id: IdLike) -> bool:
        record = self._get_record(sale_id)
        if record is None:
            return False
        self.session.delete(record)
        self.session.flush()
        return True
