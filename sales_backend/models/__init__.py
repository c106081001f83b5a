"""Models package - exports all SQLAlchemy models."""
from sales_backend.models.sale import SaleRecord
from sales_backend.models.sale_item import SaleItemRecord

__all__ = ['SaleRecord', 'SaleItemRecord']
