"""
Formatting and parsing helpers for sale payloads and CLI output.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime, timezone
from typing import Union, Optional


def to_decimal(value: Union[int, float, Decimal, str, None]) -> Optional[Decimal]:
    """
    Convert a payload value to Decimal without float artefacts.

    Returns None for empty or unparseable input so the caller can report a
    validation error instead of crashing.

    Examples:
        to_decimal("10.50") -> Decimal("10.50")
        to_decimal(19.9) -> Decimal("19.9")
        to_decimal("abc") -> None
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        if isinstance(value, str):
            value = value.strip()
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not num.is_finite():
        return None
    return num


def format_money(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Format an amount with two decimals and comma thousands separators.

    Examples:
        format_money(1500) -> "1,500.00"
        format_money(Decimal("66")) -> "66.00"
        format_money(None) -> "-"
    """
    num = to_decimal(value)
    if num is None:
        return "-"
    return f"{num.quantize(Decimal('0.01')):,.2f}"


def parse_datetime(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime into a timezone-aware UTC datetime.

    Naive values are assumed to be UTC. Returns None when the value cannot
    be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_datetime(value: Optional[datetime]) -> str:
    """Format a datetime as 'YYYY-MM-DD HH:MM' (UTC)."""
    if value is None:
        return "-"
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%d %H:%M')
