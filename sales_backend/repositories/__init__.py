"""Repositories package."""
from sales_backend.repositories.sale_repository import SaleRepository

__all__ = ['SaleRepository']
