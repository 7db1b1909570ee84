"""Sale and invoice total arithmetic.

Line items are plain dicts with ``quantity`` and ``unit_price`` keys (plus
whatever display fields the caller carries, e.g. ``medicine_name``). Totals
are recomputed from scratch on every add/remove; nothing is cached.
"""
from typing import Iterable, List, Optional, Sequence

from core.constants import DEFAULT_TAX_RATE


def line_total(item: dict) -> float:
    """quantity x unit_price, with missing values counted as zero."""
    quantity = item.get("quantity") or 0
    unit_price = item.get("unit_price") or 0
    return quantity * unit_price


def recompute(
    items: Iterable[dict],
    discount: float = 0.0,
    tax_rate: float = DEFAULT_TAX_RATE,
) -> dict:
    """Return subtotal, tax, discount and total for an ordered list of items.

    The discount is applied as entered: a discount larger than
    subtotal + tax produces a negative total. Use ``check_discount`` before
    accepting a sale.
    """
    discount = discount or 0
    subtotal = sum(line_total(item) for item in items)
    tax = round(subtotal * tax_rate, 2)
    return {
        "subtotal": subtotal,
        "tax": tax,
        "discount": discount,
        "total": subtotal + tax - discount,
    }


def validate_line_item(item: dict) -> None:
    """Reject an item that is missing its medicine, quantity or price."""
    name = str(item.get("medicine_name") or "").strip()
    quantity = item.get("quantity") or 0
    unit_price = item.get("unit_price") or 0
    if not name or quantity <= 0 or unit_price <= 0:
        raise ValueError("Please fill in all item details")


def add_item(items: Sequence[dict], item: dict) -> List[dict]:
    """Return a new item list with ``item`` appended (with its line total)."""
    new_item = dict(item)
    new_item["total"] = line_total(new_item)
    return list(items) + [new_item]


def remove_item(items: Sequence[dict], index: int) -> List[dict]:
    """Return a new item list without the item at ``index``."""
    if index < 0 or index >= len(items):
        raise IndexError(f"No line item at position {index}")
    return [item for i, item in enumerate(items) if i != index]


def check_discount(
    totals: dict, discount: float, limit_percent: Optional[float] = None
) -> None:
    """Reject discounts that are negative, exceed the pre-discount total,
    or exceed ``limit_percent`` of the subtotal."""
    discount = discount or 0
    if discount < 0:
        raise ValueError("Discount cannot be negative")
    gross = totals["subtotal"] + totals["tax"]
    if discount > gross:
        raise ValueError(
            f"Discount {discount:,.2f} exceeds the sale total {gross:,.2f}"
        )
    if limit_percent is not None and discount > 0:
        allowed = round(totals["subtotal"] * limit_percent / 100, 2)
        if discount > allowed:
            raise ValueError(
                f"Discount {discount:,.2f} exceeds the {limit_percent:g}% limit ({allowed:,.2f})"
            )
