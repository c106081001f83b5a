"""Sale model."""
from sqlalchemy import Column, String, DateTime, Enum, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sales_backend.database import Base
from sales_backend.domain.sale import SaleStatus


class SaleRecord(Base):
    """Stored sale header. Mapped to and from ``sales_backend.domain.Sale`` by the repository."""

    __tablename__ = 'sales'

    id = Column(String(36), primary_key=True)
    sale_number = Column(String(50), nullable=False)
    sale_date = Column(DateTime(timezone=True), nullable=False)
    customer_id = Column(String(50), nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    branch_id = Column(String(50), nullable=False, index=True)
    branch_name = Column(String(200), nullable=False)
    status = Column(
        Enum(SaleStatus, name='sale_status', values_callable=lambda e: [m.value for m in e], length=20),
        nullable=False,
        default=SaleStatus.ACTIVE
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    items = relationship(
        'SaleItemRecord',
        cascade='all, delete-orphan',
        passive_deletes=True,
        order_by='SaleItemRecord.position'
    )

    __table_args__ = (
        Index('ix_sales_sale_number', 'sale_number', unique=True),
    )

    def __repr__(self):
        return f"<SaleRecord(id={self.id}, sale_number={self.sale_number}, status={self.status.value})>"
