"""
Order Module - Service Layer
==============================
Checkout (cart -> pending order) and customer order lookup.
"""

import logging
import re
from typing import List

from sqlalchemy.orm import Session, joinedload

from common.exceptions import NotFoundError, ValidationError, DeliveryUnavailableError
from config.settings import COMPANY_ADDRESS, PHONE_PATTERN
from modules.cart.models import CartItem
from modules.cart.service import cart_service
from modules.order.delivery_service import delivery_service
from modules.order.models import Order, OrderItem, OrderStatus

logger = logging.getLogger("stroymarket.order")


class OrderService:

    # ==========================================
    # Checkout
    # ==========================================

    def checkout(self, db: Session, customer_id: int, data: dict) -> Order:
        """
        Create a pending order from the customer's cart and clear the cart.

        data keys:
            customer_name, customer_phone (+998 XX YYY YY YY): required
            delivery_with_service: bool; when set and the cart has deliverable
              items, delivery_address is required and the fee is charged
            delivery_address, notes: optional str

        Without delivery service the order is a self-pickup at the company
        address and carries no delivery fee.
        """
        items = cart_service.list_items(db, customer_id)
        if not items:
            raise ValidationError("Savat bo'sh.")

        name = (data.get("customer_name") or "").strip()
        phone = (data.get("customer_phone") or "").strip()
        if not name or not phone:
            raise ValidationError("Iltimos, ism va telefon raqamini kiriting.")
        if not re.match(PHONE_PATTERN, phone):
            raise ValidationError("Telefon raqami formati: +998 XX YYY YY YY")

        has_delivery_products = any(item.product.has_delivery for item in items)
        with_service = bool(data.get("delivery_with_service")) and has_delivery_products
        address = (data.get("delivery_address") or "").strip()

        delivery_fee = 0
        if with_service:
            if not address:
                raise ValidationError("Yetkazib berish uchun manzil kiriting.")
            info = delivery_service.calculate_for_customer(db, customer_id)
            if info is None:
                raise DeliveryUnavailableError()
            delivery_fee = info.final_delivery_fee
        else:
            address = f"O'zim olib ketaman: {COMPANY_ADDRESS}"

        subtotal = sum(item.line_total for item in items)
        order = Order(
            customer_id=customer_id,
            customer_name=name,
            customer_phone=phone,
            delivery_address=address,
            delivery_with_service=with_service,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total_amount=subtotal + delivery_fee,
            notes=(data.get("notes") or "").strip() or None,
            status=OrderStatus.PENDING.value,
        )
        for item in items:
            order.items.append(OrderItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_price=int(item.product.price or 0),
                total_price=item.line_total,
                rental_duration=item.rental_duration,
                rental_time_unit=item.rental_time_unit,
            ))

        db.add(order)
        db.flush()  # get order.id
        order.order_number = f"SM{order.id:08d}"

        db.query(CartItem).filter(CartItem.customer_id == customer_id).delete()
        db.flush()

        logger.info(
            f"Order {order.order_number} created for customer {customer_id}: "
            f"{len(items)} items, total={order.total_amount}"
        )
        return order

    # ==========================================
    # Queries
    # ==========================================

    def get_customer_orders(self, db: Session, customer_id: int) -> List[Order]:
        return db.query(Order).options(
            joinedload(Order.items),
        ).filter(
            Order.customer_id == customer_id,
        ).order_by(Order.id.desc()).all()

    def get_customer_order(self, db: Session, customer_id: int, order_id: int) -> Order:
        order = db.query(Order).filter(
            Order.id == order_id,
            Order.customer_id == customer_id,
        ).first()
        if not order:
            raise NotFoundError("Buyurtma topilmadi.")
        return order


# Singleton
order_service = OrderService()
