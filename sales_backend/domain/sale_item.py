"""Sale item entity and the quantity discount rules."""
import uuid
from decimal import Decimal
from typing import Optional

from sales_backend.domain.validation import ValidationResult
from sales_backend.exceptions import InvalidQuantityError

MAX_IDENTICAL_ITEMS = 20

# (minimum quantity, discount percentage), highest tier first
DISCOUNT_TIERS = (
    (10, Decimal('20')),
    (4, Decimal('10')),
)


def calculate_discount_percentage(quantity: int) -> Decimal:
    """
    Return the discount tier for a quantity.

    - below 4 units: 0%
    - 4 to 9 units: 10%
    - 10 to 20 units: 20%
    - above 20 units: not allowed, raises InvalidQuantityError

    Non-positive quantities fall in the 0% tier; rejecting them is left to
    ``SaleItem.validate()``.
    """
    if quantity > MAX_IDENTICAL_ITEMS:
        raise InvalidQuantityError(quantity, MAX_IDENTICAL_ITEMS)

    for minimum, percentage in DISCOUNT_TIERS:
        if quantity >= minimum:
            return percentage
    return Decimal('0')


class SaleItem:
    """A product line within a sale."""

    def __init__(
        self,
        product_id: str = '',
        product_name: str = '',
        quantity: int = 0,
        unit_price=Decimal('0'),
        id: Optional[uuid.UUID] = None,
        sale_id: Optional[uuid.UUID] = None,
        discount=Decimal('0'),
        is_cancelled: bool = False,
    ):
        self.id = id or uuid.uuid4()
        self.sale_id = sale_id
        self.product_id = product_id
        self.product_name = product_name
        self.quantity = quantity
        self.unit_price = Decimal(str(unit_price))
        self.discount = Decimal(str(discount))
        self.is_cancelled = is_cancelled

    @property
    def total_amount(self) -> Decimal:
        """Line total after discount: quantity * unit_price * (1 - discount / 100)."""
        return (self.quantity * self.unit_price) * (1 - self.discount / 100)

    def calculate_discount_percentage(self) -> Decimal:
        return calculate_discount_percentage(self.quantity)

    def apply_discount(self) -> None:
        """Assign the discount tier for the current quantity."""
        self.discount = self.calculate_discount_percentage()

    def cancel(self) -> None:
        self.is_cancelled = True

    def validate(self) -> ValidationResult:
        result = ValidationResult()

        if not (self.product_id or '').strip():
            result.add('product_id', 'Product ID is required')

        if not (self.product_name or '').strip():
            result.add('product_name', 'Product name is required')

        if self.quantity <= 0:
            result.add('quantity', 'Quantity must be greater than 0')

        if self.quantity > MAX_IDENTICAL_ITEMS:
            result.add('quantity', f'Cannot sell more than {MAX_IDENTICAL_ITEMS} identical items')

        if self.unit_price <= 0:
            result.add('unit_price', 'Unit price must be greater than 0')

        if self.discount < 0 or self.discount > 100:
            result.add('discount', 'Discount must be between 0 and 100')

        return result

    def __repr__(self):
        return (
            f"<SaleItem(id={self.id}, product_id={self.product_id!r}, "
            f"qty={self.quantity}, discount={self.discount})>"
        )
