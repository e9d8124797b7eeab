"""
Order Module - Models
======================
Order created from the cart at checkout, with a price snapshot per item.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, BigInteger, Boolean, Text,
    ForeignKey, DateTime,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String, unique=True, nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)

    # Contact
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String(20), nullable=False)

    # Delivery
    delivery_address = Column(Text, nullable=False)
    delivery_with_service = Column(Boolean, default=False, nullable=False)

    # Amounts (so'm)
    subtotal = Column(BigInteger, nullable=False)
    delivery_fee = Column(BigInteger, default=0, nullable=False)
    total_amount = Column(BigInteger, nullable=False)

    notes = Column(Text, nullable=True)
    status = Column(String, default=OrderStatus.PENDING.value, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    customer = relationship("User", foreign_keys=[customer_id])
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "delivery_address": self.delivery_address,
            "delivery_with_service": self.delivery_with_service,
            "subtotal": self.subtotal,
            "delivery_fee": self.delivery_fee,
            "total_amount": self.total_amount,
            "notes": self.notes,
            "status": self.status,
            "items": [item.to_dict() for item in self.items],
        }

    def __repr__(self):
        return f"<Order {self.order_number} ({self.status})>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)

    # Snapshot at time of purchase
    quantity = Column(Integer, nullable=False)
    unit_price = Column(BigInteger, nullable=False)
    total_price = Column(BigInteger, nullable=False)
    rental_duration = Column(Integer, nullable=True)
    rental_time_unit = Column(String, nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "rental_duration": self.rental_duration,
            "rental_time_unit": self.rental_time_unit,
        }
