"""
Domain events raised by the sales flows.

Events carry the resulting aggregate; the publisher serialises them with
``to_dict()``.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from sales_backend.domain.sale import Sale, utcnow
from sales_backend.domain.sale_item import SaleItem


def sale_item_to_dict(item: SaleItem) -> Dict[str, Any]:
    return {
        'id': str(item.id),
        'sale_id': str(item.sale_id) if item.sale_id else None,
        'product_id': item.product_id,
        'product_name': item.product_name,
        'quantity': item.quantity,
        'unit_price': str(item.unit_price),
        'discount': str(item.discount),
        'total_amount': str(item.total_amount),
        'is_cancelled': item.is_cancelled,
    }


def sale_to_dict(sale: Sale) -> Dict[str, Any]:
    return {
        'id': str(sale.id),
        'sale_number': sale.sale_number,
        'sale_date': sale.sale_date.isoformat() if sale.sale_date else None,
        'customer_id': sale.customer_id,
        'customer_name': sale.customer_name,
        'branch_id': sale.branch_id,
        'branch_name': sale.branch_name,
        'status': sale.status.value,
        'total_amount': str(sale.total_amount),
        'created_at': sale.created_at.isoformat() if sale.created_at else None,
        'updated_at': sale.updated_at.isoformat() if sale.updated_at else None,
        'items': [sale_item_to_dict(item) for item in sale.items],
    }


@dataclass
class DomainEvent:
    """Base class; subclasses must set ``sale``."""
    sale: Sale
    occurred_at: datetime = field(default_factory=utcnow, init=False)

    def __post_init__(self):
        if self.sale is None:
            raise ValueError('sale is required')

    @classmethod
    def event_type(cls) -> str:
        return cls.__name__

    @classmethod
    def default_topic(cls, prefix: str = 'sales') -> str:
        """``SaleCreatedEvent`` -> ``sales-salecreated``."""
        return f"{prefix}-{cls.__name__.lower().replace('event', '')}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_type': self.event_type(),
            'occurred_at': self.occurred_at.isoformat(),
            'sale': sale_to_dict(self.sale),
        }


@dataclass
class SaleCreatedEvent(DomainEvent):
    pass


@dataclass
class SaleModifiedEvent(DomainEvent):
    pass


@dataclass
class SaleCancelledEvent(DomainEvent):
    cancellation_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        rv = super().to_dict()
        rv['cancellation_reason'] = self.cancellation_reason
        return rv


@dataclass
class ItemCancelledEvent(DomainEvent):
    cancelled_item: Optional[SaleItem] = None
    cancellation_reason: Optional[str] = None

    def __post_init__(self):
        super().__post_init__()
        if self.cancelled_item is None:
            raise ValueError('cancelled_item is required')

    def to_dict(self) -> Dict[str, Any]:
        rv = super().to_dict()
        rv['cancelled_item'] = sale_item_to_dict(self.cancelled_item)
        rv['cancellation_reason'] = self.cancellation_reason
        return rv
