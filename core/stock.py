"""Stock level and expiry classification for medicine records."""
from datetime import date, datetime
from typing import Optional, Union

from core.constants import (
    EXPIRY_EXPIRED,
    EXPIRY_OK,
    EXPIRY_SOON,
    EXPIRY_UNKNOWN,
    STOCK_IN,
    STOCK_LOW,
    STOCK_MEDIUM,
)


def classify(quantity: int, minimum: int) -> str:
    """Bucket a stock level against its minimum.

    quantity <= minimum is low, up to twice the minimum is medium,
    anything above that is in stock.
    """
    if quantity <= minimum:
        return STOCK_LOW
    if quantity <= minimum * 2:
        return STOCK_MEDIUM
    return STOCK_IN


def _coerce_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def expiry_status(
    expiry_date: Union[str, date, None], today: date, alert_days: int
) -> str:
    expires = _coerce_date(expiry_date)
    if expires is None:
        return EXPIRY_UNKNOWN
    if expires < today:
        return EXPIRY_EXPIRED
    if (expires - today).days <= alert_days:
        return EXPIRY_SOON
    return EXPIRY_OK
