"""Domain package - sale aggregate, discount rules and domain events."""
from sales_backend.domain.validation import ValidationErrorDetail, ValidationResult
from sales_backend.domain.sale_item import SaleItem, calculate_discount_percentage, MAX_IDENTICAL_ITEMS
from sales_backend.domain.sale import Sale, SaleStatus
from sales_backend.domain.events import (
    DomainEvent, SaleCreatedEvent, SaleModifiedEvent, SaleCancelledEvent, ItemCancelledEvent,
    sale_to_dict, sale_item_to_dict
)

__all__ = [
    'ValidationErrorDetail', 'ValidationResult',
    'SaleItem', 'calculate_discount_percentage', 'MAX_IDENTICAL_ITEMS',
    'Sale', 'SaleStatus',
    'DomainEvent', 'SaleCreatedEvent', 'SaleModifiedEvent', 'SaleCancelledEvent', 'ItemCancelledEvent',
    'sale_to_dict', 'sale_item_to_dict',
]
