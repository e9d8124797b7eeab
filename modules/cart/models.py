"""
Cart Module - Models
=====================
Cart items owned directly by the customer, one row per product.
"""

from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from modules.order.delivery_calculator import line_total as calc_line_total


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    rental_duration = Column(Integer, nullable=True)
    rental_time_unit = Column(String, nullable=True)  # "hour" | "day" | "week" | "month"
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    customer = relationship("User", foreign_keys=[customer_id])
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("customer_id", "product_id", name="uq_cart_customer_product"),
        CheckConstraint("quantity >= 1", name="ck_cart_qty"),
    )

    @property
    def line_total(self) -> int:
        return calc_line_total(self.product.price, self.quantity, self.product.product_type, self.rental_duration)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "rental_duration": self.rental_duration,
            "rental_time_unit": self.rental_time_unit,
            "line_total": self.line_total,
            "product": self.product.to_dict(),
        }
