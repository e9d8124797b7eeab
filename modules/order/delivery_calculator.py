"""
Delivery Module - Calculator
==============================
Order-level delivery fee with free-delivery threshold.
Pure functions: no database, same input -> same DeliveryInfo.
"""

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_FLOOR
from typing import Iterable, Optional


@dataclass(frozen=True)
class DeliveryInfo:
    """Derived per request from the current cart; never persisted."""
    cart_total: int
    original_delivery_fee: int
    delivery_discount: int
    final_delivery_fee: int
    free_delivery_threshold: int
    has_delivery_items: bool
    discount_percentage: int

    def to_dict(self) -> dict:
        return asdict(self)


def line_total(price, quantity, product_type: str = "sale", rental_duration=None) -> int:
    """price x quantity, or price x rental_duration x quantity for rentals with a duration."""
    total = int(price or 0) * int(quantity or 0)
    if product_type == "rental" and rental_duration:
        total *= int(rental_duration)
    return total


def compute_delivery_info(
    items: Iterable,
    free_delivery_threshold: int,
    discount_percent: int = 100,
) -> Optional[DeliveryInfo]:
    """
    Compute delivery info for cart items (CartItem rows with .product loaded).

    - The fee is charged once per order: the highest delivery_price among
      items whose product has delivery. Items without delivery are only
      flagged by the caller; they never change the fee.
    - cart_total >= threshold applies `discount_percent` of the fee
      (100 = full waiver).
    - Empty cart -> None (not computed), never a zero-filled object.
    """
    items = list(items)
    if not items:
        return None

    cart_total = 0
    has_delivery_items = False
    original_fee = 0

    for item in items:
        product = item.product
        cart_total += line_total(product.price, item.quantity, product.product_type, item.rental_duration)
        if product.has_delivery:
            has_delivery_items = True
            original_fee = max(original_fee, int(product.delivery_price or 0))

    threshold = int(free_delivery_threshold)
    if cart_total >= threshold:
        percent = int(discount_percent)
        discount = int(
            (Decimal(original_fee) * Decimal(percent) / Decimal(100)).quantize(Decimal("1"), rounding=ROUND_FLOOR)
        )
    else:
        percent = 0
        discount = 0

    return DeliveryInfo(
        cart_total=cart_total,
        original_delivery_fee=original_fee,
        delivery_discount=discount,
        final_delivery_fee=original_fee - discount,
        free_delivery_threshold=threshold,
        has_delivery_items=has_delivery_items,
        discount_percentage=percent,
    )
