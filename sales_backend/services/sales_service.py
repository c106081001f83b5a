"""
Sales service with transactional logic.
Handles sale creation, updates, cancellation and deletion, and publishes
the matching domain events once the transaction is committed.
"""
import logging
import math
import re
import uuid
from typing import List, Dict, Optional, Any, Tuple
from sqlalchemy.exc import IntegrityError
from sales_backend.domain import (
    Sale, SaleItem, MAX_IDENTICAL_ITEMS,
    SaleCreatedEvent, SaleModifiedEvent, SaleCancelledEvent, ItemCancelledEvent
)
from sales_backend.exceptions import SalesError, BusinessLogicError, NotFoundError, ValidationError
from sales_backend.repositories import SaleRepository
from sales_backend.utils.formatters import to_decimal, parse_datetime

logger = logging.getLogger(__name__)

ID_MAX_LENGTH = 50
NAME_MAX_LENGTH = 200
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_ORDER = ('saledate', True)
PRICE_EXPONENT = -2
INTEGER_PATTERN = re.compile(r'-?[0-9]+')

SORT_KEYS = {
    'saledate': lambda s: s.sale_date,
    'totalamount': lambda s: s.total_amount,
    'customername': lambda s: s.customer_name,
    'branchname': lambda s: s.branch_name,
    'salenumber': lambda s: s.sale_number,
}


# =====================================================
# INPUT VALIDATION
# =====================================================

def _check_text(errors: List[Tuple[str, str]], data: dict, field: str, label: str, max_length: int):
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        errors.append((field, f'{label} is required'))
    elif len(value) > max_length:
        errors.append((field, f'{label} must not exceed {max_length} characters'))


def _parse_quantity(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and INTEGER_PATTERN.fullmatch(value.strip()):
        return int(value.strip())
    return None


def _validate_item_payload(errors: List[Tuple[str, str]], index: int, item: Any):
    prefix = f'items[{index}]'
    if not isinstance(item, dict):
        errors.append((prefix, 'Item must be an object'))
        return

    for field, label, max_length in (
        ('product_id', 'Product ID', ID_MAX_LENGTH),
        ('product_name', 'Product name', NAME_MAX_LENGTH),
    ):
        value = item.get(field)
        if not isinstance(value, str) or not value.strip():
            errors.append((f'{prefix}.{field}', f'{label} is required'))
        elif len(value) > max_length:
            errors.append((f'{prefix}.{field}', f'{label} must not exceed {max_length} characters'))

    quantity = _parse_quantity(item.get('quantity'))
    if quantity is None:
        errors.append((f'{prefix}.quantity', 'Quantity must be an integer'))
    elif quantity <= 0:
        errors.append((f'{prefix}.quantity', 'Quantity must be greater than 0'))
    elif quantity > MAX_IDENTICAL_ITEMS:
        errors.append((f'{prefix}.quantity', f'Cannot sell more than {MAX_IDENTICAL_ITEMS} identical items'))

    unit_price = to_decimal(item.get('unit_price'))
    if unit_price is None or unit_price <= 0:
        errors.append((f'{prefix}.unit_price', 'Unit price must be greater than 0'))
    elif unit_price.normalize().as_tuple().exponent < PRICE_EXPONENT:
        errors.append((f'{prefix}.unit_price', 'Unit price must not have more than 2 decimal places'))

    item_id = item.get('id')
    if item_id not in (None, '') and _parse_uuid(item_id) is None:
        errors.append((f'{prefix}.id', 'Item ID must be a valid UUID'))


def validate_sale_payload(data: Any, require_sale_fields: bool = True) -> None:
    """
    Validate a create/update payload before the aggregate is built.

    ``require_sale_fields`` adds the create-only checks on sale number and
    sale date. Raises ValidationError with every problem found.
    """
    if not isinstance(data, dict):
        raise ValidationError([('payload', 'Sale payload must be an object')])

    errors: List[Tuple[str, str]] = []

    if require_sale_fields:
        _check_text(errors, data, 'sale_number', 'Sale number', ID_MAX_LENGTH)
        if not data.get('sale_date'):
            errors.append(('sale_date', 'Sale date is required'))
        elif parse_datetime(data.get('sale_date')) is None:
            errors.append(('sale_date', 'Sale date must be valid'))

    _check_text(errors, data, 'customer_id', 'Customer ID', ID_MAX_LENGTH)
    _check_text(errors, data, 'customer_name', 'Customer name', NAME_MAX_LENGTH)
    _check_text(errors, data, 'branch_id', 'Branch ID', ID_MAX_LENGTH)
    _check_text(errors, data, 'branch_name', 'Branch name', NAME_MAX_LENGTH)

    items = data.get('items')
    if not isinstance(items, list) or not items:
        errors.append(('items', 'Sale must contain at least one item'))
    else:
        seen_ids = set()
        for index, item in enumerate(items):
            _validate_item_payload(errors, index, item)
            item_id = _parse_uuid(item.get('id')) if isinstance(item, dict) and item.get('id') else None
            if item_id is not None:
                if item_id in seen_ids:
                    errors.append((f'items[{index}].id', 'Duplicate item ID'))
                seen_ids.add(item_id)

    if errors:
        raise ValidationError(errors)


def _parse_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def _build_item(item_data: Dict[str, Any], keep_id: bool = False) -> SaleItem:
    return SaleItem(
        id=_parse_uuid(item_data['id']) if keep_id and item_data.get('id') else None,
        product_id=item_data['product_id'].strip(),
        product_name=item_data['product_name'].strip(),
        quantity=_parse_quantity(item_data['quantity']),
        unit_price=to_decimal(item_data['unit_price']),
    )


def _ensure_valid(sale: Sale) -> None:
    result = sale.validate()
    if not result.is_valid:
        raise ValidationError(result.as_pairs(), message=f"Sale validation failed: {', '.join(result.messages())}")


def _publish(publisher, event) -> None:
    """Publish after commit; delivery problems never undo the operation."""
    if publisher is None:
        from sales_backend.services.event_publisher import get_publisher
        publisher = get_publisher()
    try:
        publisher.publish(event)
    except Exception as e:
        logger.error(f"Failed to publish {event.event_type()} for sale {event.sale.id}: {e}")


# =====================================================
# COMMANDS
# =====================================================

def create_sale(session, data: Dict[str, Any], publisher=None) -> Sale:
    """
    Create a sale from a payload.

    Steps:
    1. Validate the payload
    2. Reject a sale number that is already used
    3. Build the aggregate, applying the quantity discount to each item
    4. Validate the aggregate
    5. Persist, commit and publish SaleCreatedEvent

    Raises:
        ValidationError: invalid payload or aggregate
        BusinessLogicError: duplicate sale number (409) or quantity ceiling
    """
    validate_sale_payload(data, require_sale_fields=True)
    repository = SaleRepository(session)
    sale_number = data['sale_number'].strip()

    try:
        if repository.get_by_sale_number(sale_number) is not None:
            raise BusinessLogicError(f'Sale with number {sale_number} already exists', status_code=409)

        sale = Sale(
            sale_number=sale_number,
            sale_date=parse_datetime(data['sale_date']),
            customer_id=data['customer_id'].strip(),
            customer_name=data['customer_name'].strip(),
            branch_id=data['branch_id'].strip(),
            branch_name=data['branch_name'].strip(),
        )
        for item_data in data['items']:
            sale.add_item(_build_item(item_data))

        _ensure_valid(sale)

        repository.create(sale)
        session.commit()

    except IntegrityError:
        session.rollback()
        # Concurrent creation won the unique index on sale_number
        raise BusinessLogicError(f'Sale with number {sale_number} already exists', status_code=409)
    except SalesError:
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.exception(f"Error creating sale {sale_number}: {e}")
        raise

    logger.info(f"Sale {sale.sale_number} created (id={sale.id}, total={sale.total_amount})")
    _publish(publisher, SaleCreatedEvent(sale))
    return sale


def get_sale(session, sale_id) -> Sale:
    """Return a sale or raise NotFoundError."""
    sale = SaleRepository(session).get_by_id(sale_id)
    if sale is None:
        raise NotFoundError(f'Sale with ID {sale_id} not found')
    return sale


def _parse_order_by(order_by: Optional[str]) -> Tuple[str, bool]:
    """'totalAmount desc' -> ('totalamount', True). Unknown fields fall back to sale date desc."""
    if not order_by or not order_by.strip():
        return DEFAULT_ORDER
    parts = order_by.strip().split()
    field = parts[0].lower()
    direction = parts[1].lower() if len(parts) > 1 else 'asc'
    if field not in SORT_KEYS:
        return DEFAULT_ORDER
    return field, direction == 'desc'


def list_sales(
    session,
    page: int = 1,
    size: int = DEFAULT_PAGE_SIZE,
    customer_id: Optional[str] = None,
    branch_id: Optional[str] = None,
    order_by: Optional[str] = None,
    max_page_size: int = MAX_PAGE_SIZE
) -> Dict[str, Any]:
    """
    List sales with optional customer/branch filters, sorting and pagination.

    Returns a dict with ``data`` (list of Sale), ``current_page``,
    ``page_size``, ``total_items`` and ``total_pages``.
    """
    errors = []
    if page is None or page <= 0:
        errors.append(('page', 'Page must be greater than 0'))
    if size is None or size <= 0:
        errors.append(('size', 'Size must be greater than 0'))
    elif size > max_page_size:
        errors.append(('size', f'Size must not exceed {max_page_size}'))
    if customer_id and len(customer_id) > ID_MAX_LENGTH:
        errors.append(('customer_id', f'Customer ID must not exceed {ID_MAX_LENGTH} characters'))
    if branch_id and len(branch_id) > ID_MAX_LENGTH:
        errors.append(('branch_id', f'Branch ID must not exceed {ID_MAX_LENGTH} characters'))
    if errors:
        raise ValidationError(errors)

    repository = SaleRepository(session)
    field, descending = _parse_order_by(order_by)

    if customer_id:
        sales = repository.get_by_customer_id(customer_id)
        if branch_id:
            sales = [s for s in sales if s.branch_id == branch_id]
    elif branch_id:
        sales = repository.get_by_branch_id(branch_id)
    else:
        sales = None

    if sales is None and (field, descending) == DEFAULT_ORDER:
        # Unfiltered default listing is paginated by the database
        data = repository.get_all(page, size)
        total_items = repository.get_total_count()
    else:
        if sales is None:
            sales = repository.list_all()
        sales = sorted(sales, key=SORT_KEYS[field], reverse=descending)
        total_items = len(sales)
        data = sales[(page - 1) * size:page * size]

    return {
        'data': data,
        'current_page': page,
        'page_size': size,
        'total_items': total_items,
        'total_pages': math.ceil(total_items / size) if total_items else 0,
    }


def update_sale(session, sale_id, data: Dict[str, Any], publisher=None) -> Sale:
    """
    Replace customer, branch and the whole item set of a sale.

    Items that carry the id of an existing item keep that id and its
    cancelled flag; an id that is not one of the sale's items is rejected.
    The discount is recomputed for every item.
    """
    validate_sale_payload(data, require_sale_fields=False)
    repository = SaleRepository(session)

    try:
        sale = repository.get_by_id(sale_id)
        if sale is None:
            raise NotFoundError(f'Sale with ID {sale_id} not found')

        existing_ids = {item.id for item in sale.items}
        cancelled_ids = {item.id for item in sale.items if item.is_cancelled}
        unknown = [
            (f'items[{index}].id', f"Item {item_data['id']} not found in sale")
            for index, item_data in enumerate(data['items'])
            if item_data.get('id') and _parse_uuid(item_data['id']) not in existing_ids
        ]
        if unknown:
            raise ValidationError(unknown)

        sale.customer_id = data['customer_id'].strip()
        sale.customer_name = data['customer_name'].strip()
        sale.branch_id = data['branch_id'].strip()
        sale.branch_name = data['branch_name'].strip()

        sale.clear_items()
        for item_data in data['items']:
            item = _build_item(item_data, keep_id=True)
            if item.id in cancelled_ids:
                item.cancel()
            sale.add_item(item)

        _ensure_valid(sale)

        repository.update(sale)
        session.commit()

    except SalesError:
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.exception(f"Error updating sale {sale_id}: {e}")
        raise

    logger.info(f"Sale {sale.sale_number} updated (total={sale.total_amount})")
    _publish(publisher, SaleModifiedEvent(sale))
    return sale


def cancel_sale(session, sale_id, reason: Optional[str] = None, publisher=None) -> Dict[str, Any]:
    """
    Cancel a whole sale.

    Returns:
        dict with ``success``, ``message`` and ``sale_id``. A missing or
        already cancelled sale is reported with ``success=False``.
    """
    repository = SaleRepository(session)
    sale = repository.get_by_id(sale_id)

    if sale is None:
        return {'success': False, 'message': f'Sale with ID {sale_id} not found', 'sale_id': sale_id}

    if sale.is_cancelled:
        return {'success': False, 'message': 'Sale is already cancelled', 'sale_id': sale_id}

    try:
        sale.cancel()
        repository.update(sale)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.exception(f"Error cancelling sale {sale_id}: {e}")
        raise

    logger.info(f"Sale {sale.sale_number} cancelled (reason={reason!r})")
    _publish(publisher, SaleCancelledEvent(sale, cancellation_reason=reason))
    return {'success': True, 'message': 'Sale cancelled successfully', 'sale_id': sale_id}


def cancel_item(session, sale_id, item_id, reason: Optional[str] = None, publisher=None) -> Dict[str, Any]:
    """
    Cancel a single item of a sale.

    Returns:
        dict with ``success``, ``message``, ``sale_id`` and ``item_id``.
        Missing sale, missing item and already cancelled item are reported
        with ``success=False``.
    """
    result = {'sale_id': sale_id, 'item_id': item_id}
    repository = SaleRepository(session)
    sale = repository.get_by_id(sale_id)

    if sale is None:
        return {**result, 'success': False, 'message': f'Sale with ID {sale_id} not found'}

    item_uuid = _parse_uuid(item_id)
    item = sale.get_item(item_uuid) if item_uuid else None
    if item is None:
        return {**result, 'success': False, 'message': f'Item with ID {item_id} not found in sale'}

    if item.is_cancelled:
        return {**result, 'success': False, 'message': 'Item is already cancelled'}

    try:
        sale.cancel_item(item.id)
        repository.update(sale)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.exception(f"Error cancelling item {item_id} of sale {sale_id}: {e}")
        raise

    logger.info(f"Item {item_id} of sale {sale.sale_number} cancelled (reason={reason!r})")
    _publish(publisher, ItemCancelledEvent(sale, cancelled_item=item, cancellation_reason=reason))
    return {**result, 'success': True, 'message': 'Item cancelled successfully'}


def delete_sale(session, sale_id) -> Dict[str, Any]:
    """Delete a sale and its items. Returns dict with ``success`` and ``message``."""
    try:
        deleted = SaleRepository(session).delete(sale_id)
        if not deleted:
            return {'success': False, 'message': f'Sale with ID {sale_id} not found'}
        session.commit()
    except Exception as e:
        session.rollback()
        logger.exception(f"Error deleting sale {sale_id}: {e}")
        raise

    logger.info(f"Sale {sale_id} deleted")
    return {'success': True, 'message': 'Sale deleted successfully'}
