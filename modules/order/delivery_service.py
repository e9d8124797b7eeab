"""
Delivery Module - Service Layer
==================================
Per-customer delivery info (fee, threshold discount) and the
deliverable / non-deliverable split shown at checkout.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from modules.admin.service import delivery_settings_service
from modules.cart.models import CartItem
from modules.order.delivery_calculator import DeliveryInfo, compute_delivery_info

logger = logging.getLogger("stroymarket.delivery")


class DeliveryService:

    def _cart_items(self, db: Session, customer_id: int):
        return db.query(CartItem).options(
            joinedload(CartItem.product),
        ).filter(
            CartItem.customer_id == customer_id,
        ).order_by(CartItem.id).all()

    # ==========================================
    # Delivery Fee
    # ==========================================

    def calculate_for_customer(self, db: Session, customer_id: int) -> Optional[DeliveryInfo]:
        """
        Delivery info for the customer's current cart.
        None means "not available": empty cart, or any failure while computing.
        Callers must not read None as a zero fee.
        """
        try:
            items = self._cart_items(db, customer_id)
            if not items:
                return None
            settings = delivery_settings_service.get(db)
            return compute_delivery_info(
                items,
                free_delivery_threshold=settings["free_delivery_threshold"],
                discount_percent=settings["delivery_discount_percent"],
            )
        except Exception:
            logger.exception(f"Delivery info unavailable for customer {customer_id}")
            return None

    # ==========================================
    # Checkout Summary
    # ==========================================

    def get_delivery_summary(self, db: Session, customer_id: int) -> dict:
        """Split cart products into deliverable / pickup-only for the checkout warning."""
        items = self._cart_items(db, customer_id)

        delivery_products = []
        no_delivery_products = []
        for item in items:
            p = item.product
            row = {
                "id": p.id,
                "name_uz": p.name_uz,
                "quantity": item.quantity,
                "delivery_price": int(p.delivery_price or 0),
            }
            if p.has_delivery:
                delivery_products.append(row)
            else:
                no_delivery_products.append(row)

        return {
            "has_delivery_products": bool(delivery_products),
            "has_no_delivery_products": bool(no_delivery_products),
            "delivery_products": delivery_products,
            "no_delivery_products": no_delivery_products,
            "max_delivery_fee": max((r["delivery_price"] for r in delivery_products), default=0),
        }


# Singleton
delivery_service = DeliveryService()
