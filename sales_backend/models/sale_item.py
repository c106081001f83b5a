"""Sale Item model."""
from sqlalchemy import Column, String, Integer, Numeric, Boolean, ForeignKey
from sales_backend.database import Base


class SaleItemRecord(Base):
    """Stored sale item (detalle de venta)."""

    __tablename__ = 'sale_items'

    id = Column(String(36), primary_key=True)
    sale_id = Column(String(36), ForeignKey('sales.id', ondelete='CASCADE'), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(String(50), nullable=False)
    product_name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False)
    discount = Column(Numeric(5, 2), nullable=False, default=0)
    is_cancelled = Column(Boolean, nullable=False, default=False, server_default='false')

    def __repr__(self):
        return f"<SaleItemRecord(id={self.id}, product_id={self.product_id}, qty={self.quantity})>"
