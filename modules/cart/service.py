"""
Cart Module - Service Layer
==============================
Cart management: add/update/remove items, totals with delivery.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from common.exceptions import NotFoundError, ValidationError
from modules.cart.models import CartItem
from modules.catalog.models import Product
from modules.order.delivery_service import delivery_service

logger = logging.getLogger("stroymarket.cart")


class CartService:

    def list_items(self, db: Session, customer_id: int) -> List[CartItem]:
        return db.query(CartItem).options(
            joinedload(CartItem.product),
        ).filter(
            CartItem.customer_id == customer_id,
        ).order_by(CartItem.id).all()

    def _get_item(self, db: Session, customer_id: int, item_id: int) -> CartItem:
        item = db.query(CartItem).filter(
            CartItem.id == item_id,
            CartItem.customer_id == customer_id,
        ).first()
        if not item:
            raise NotFoundError("Savatdagi mahsulot topilmadi.")
        return item

    def add_item(
        self,
        db: Session,
        customer_id: int,
        product_id: int,
        quantity: int = 1,
        rental_duration: Optional[int] = None,
        rental_time_unit: Optional[str] = None,
    ) -> CartItem:
        """Add a product; if it is already in the cart its quantity is increased."""
        if quantity < 1:
            raise ValidationError("Miqdor kamida 1 bo'lishi kerak.")

        product = db.query(Product).filter(
            Product.id == product_id,
            Product.is_available == True,
        ).first()
        if not product:
            raise NotFoundError("Mahsulot topilmadi.")

        item = db.query(CartItem).filter(
            CartItem.customer_id == customer_id,
            CartItem.product_id == product_id,
        ).first()

        if item:
            item.quantity += quantity
        else:
            item = CartItem(
                customer_id=customer_id,
                product_id=product_id,
                quantity=quantity,
                rental_duration=rental_duration if product.is_rental else None,
                rental_time_unit=rental_time_unit if product.is_rental else None,
            )
            db.add(item)

        db.flush()
        return item

    def update_quantity(self, db: Session, customer_id: int, item_id: int, quantity: int) -> Optional[CartItem]:
        """Set quantity. quantity <= 0 removes the item and returns None."""
        item = self._get_item(db, customer_id, item_id)
        if quantity <= 0:
            db.delete(item)
            db.flush()
            return None
        item.quantity = quantity
        db.flush()
        return item

    def remove_item(self, db: Session, customer_id: int, item_id: int):
        item = self._get_item(db, customer_id, item_id)
        db.delete(item)
        db.flush()

    def clear_cart(self, db: Session, customer_id: int):
        """Remove all items from customer's cart."""
        deleted = db.query(CartItem).filter(CartItem.customer_id == customer_id).delete()
        db.flush()
        if deleted:
            logger.info(f"Cart cleared for customer {customer_id} ({deleted} items)")

    def summarize(self, db: Session, customer_id: int) -> dict:
        """
        Cart contents with totals.
        delivery_info is None when not computed (empty cart or calculation failure).
        """
        items = self.list_items(db, customer_id)
        total_price = sum(item.line_total for item in items)
        delivery_info = delivery_service.calculate_for_customer(db, customer_id) if items else None
        final_fee = delivery_info.final_delivery_fee if delivery_info else 0

        return {
            "items": [item.to_dict() for item in items],
            "total_items": sum(item.quantity for item in items),
            "unique_items_count": len(items),
            "total_price": total_price,
            "delivery_info": delivery_info.to_dict() if delivery_info else None,
            "grand_total": total_price + final_fee,
        }


# Singleton
cart_service = CartService()
