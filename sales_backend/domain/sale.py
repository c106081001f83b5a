"""
Sale aggregate root.

A sale owns its items exclusively: they live in an id-keyed container on
the sale and only point back to it through ``SaleItem.sale_id``.
"""
import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from sales_backend.domain.sale_item import SaleItem
from sales_backend.domain.validation import ValidationResult


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SaleStatus(enum.Enum):
    """Sale status enum."""
    ACTIVE = "Active"
    CANCELLED = "Cancelled"


class Sale:
    """Sale header plus its items."""

    def __init__(
        self,
        sale_number: str = '',
        customer_id: str = '',
        customer_name: str = '',
        branch_id: str = '',
        branch_name: str = '',
        sale_date: Optional[datetime] = None,
        id: Optional[uuid.UUID] = None,
        status: SaleStatus = SaleStatus.ACTIVE,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        now = utcnow()
        self.id = id or uuid.uuid4()
        self.sale_number = sale_number
        self.sale_date = sale_date if sale_date is not None else now
        self.customer_id = customer_id
        self.customer_name = customer_name
        self.branch_id = branch_id
        self.branch_name = branch_name
        self.status = status
        self.created_at = created_at or now
        self.updated_at = updated_at
        self._items: Dict[uuid.UUID, SaleItem] = {}

    @property
    def items(self) -> List[SaleItem]:
        return list(self._items.values())

    @property
    def total_amount(self) -> Decimal:
        """Sum of every item total, cancelled items included."""
        return sum((item.total_amount for item in self._items.values()), Decimal('0'))

    @property
    def is_cancelled(self) -> bool:
        return self.status == SaleStatus.CANCELLED

    def get_item(self, item_id: uuid.UUID) -> Optional[SaleItem]:
        return self._items.get(item_id)

    def _touch(self) -> None:
        self.updated_at = utcnow()

    def add_item(self, item: SaleItem) -> None:
        """Attach an item, applying the quantity discount tier."""
        if item is None:
            raise ValueError('item is required')

        item.sale_id = self.id
        item.apply_discount()
        self._items[item.id] = item
        self._touch()

    def attach_item(self, item: SaleItem) -> None:
        """Re-attach a stored item as-is (no discount recalculation, no timestamp)."""
        item.sale_id = self.id
        self._items[item.id] = item

    def remove_item(self, item_id: uuid.UUID) -> None:
        if self._items.pop(item_id, None) is not None:
            self._touch()

    def clear_items(self) -> None:
        self._items.clear()

    def cancel(self) -> None:
        self.status = SaleStatus.CANCELLED
        self._touch()

    def cancel_item(self, item_id: uuid.UUID) -> None:
        item = self._items.get(item_id)
        if item is not None:
            item.cancel()
            self._touch()

    def validate(self) -> ValidationResult:
        """Check header fields and every item; errors are collected, not raised."""
        result = ValidationResult()

        if not (self.sale_number or '').strip():
            result.add('sale_number', 'Sale number is required')

        if not (self.customer_id or '').strip():
            result.add('customer_id', 'Customer ID is required')

        if not (self.customer_name or '').strip():
            result.add('customer_name', 'Customer name is required')

        if not (self.branch_id or '').strip():
            result.add('branch_id', 'Branch ID is required')

        if not (self.branch_name or '').strip():
            result.add('branch_name', 'Branch name is required')

        if self.sale_date is None:
            result.add('sale_date', 'Sale date is required')

        if not self._items:
            result.add('items', 'Sale must contain at least one item')

        for item in self._items.values():
            result.extend(item.validate())

        return result

    def __repr__(self):
        return f"<Sale(id={self.id}, number={self.sale_number!r}, status={self.status.value})>"
