"""
Catalog Module - Models
========================
Category (self-referencing tree with materialized path) and Product.
"""

import json

from sqlalchemy import (
    Column, Integer, String, BigInteger, Boolean, Text,
    ForeignKey, DateTime, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


# ==========================================
# 🗂️ Category
# ==========================================

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name_uz = Column(String, nullable=False)
    name_ru = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True, index=True)

    # Depth (0 = root) and ancestry ids joined by "/", e.g. "1/4/9"
    level = Column(Integer, default=0, nullable=False)
    path = Column(String, nullable=True, index=True)

    icon = Column(String, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, server_default="true", nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    parent = relationship("Category", remote_side=[id], foreign_keys=[parent_id])
    products = relationship("Product", back_populates="category")

    @property
    def ancestor_ids(self) -> list:
        """Ids from the materialized path, root first, excluding self."""
        if not self.path:
            return []
        ids = [int(p) for p in self.path.split("/") if p.isdigit()]
        return ids[:-1]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name_uz": self.name_uz,
            "name_ru": self.name_ru,
            "parent_id": self.parent_id,
            "level": self.level,
            "path": self.path,
            "icon": self.icon,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f"<Category {self.id} {self.name_uz}>"


# ==========================================
# 📦 Product
# ==========================================

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name_uz = Column(String, nullable=False)
    name_ru = Column(String, nullable=True)
    description_uz = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    price = Column(BigInteger, default=0, nullable=False)              # so'm
    unit = Column(String, default="dona", nullable=False)
    product_type = Column(String, default="sale", server_default="sale", nullable=False)  # "sale" | "rental"
    rental_price_per_unit = Column(BigInteger, nullable=True)
    rental_deposit = Column(BigInteger, nullable=True)
    stock_quantity = Column(Integer, default=0, nullable=False)
    min_order_quantity = Column(Integer, default=1, nullable=False)

    # Delivery
    has_delivery = Column(Boolean, default=False, server_default="false", nullable=False)
    delivery_price = Column(BigInteger, default=0, nullable=False)    # so'm per order
    delivery_limit = Column(Integer, nullable=True)

    is_available = Column(Boolean, default=True, server_default="true", nullable=False, index=True)

    # Image URLs from object storage: JSON list, stored and returned unchanged
    _images = Column("images", Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    category = relationship("Category", back_populates="products")

    __table_args__ = (
        CheckConstraint("product_type IN ('sale', 'rental')", name="ck_product_type"),
        Index("ix_products_category_available", "category_id", "is_available"),
    )

    @property
    def images(self) -> list:
        if not self._images:
            return []
        try:
            return json.loads(self._images)
        except (json.JSONDecodeError, TypeError):
            return []

    @images.setter
    def images(self, value: list):
        self._images = json.dumps(value) if value else None

    @property
    def is_rental(self) -> bool:
        return self.product_type == "rental"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name_uz": self.name_uz,
            "name_ru": self.name_ru,
            "description_uz": self.description_uz,
            "category_id": self.category_id,
            "price": self.price,
            "unit": self.unit,
            "product_type": self.product_type,
            "rental_price_per_unit": self.rental_price_per_unit,
            "rental_deposit": self.rental_deposit,
            "stock_quantity": self.stock_quantity,
            "min_order_quantity": self.min_order_quantity,
            "has_delivery": self.has_delivery,
            "delivery_price": self.delivery_price,
            "delivery_limit": self.delivery_limit,
            "is_available": self.is_available,
            "images": self.images,
        }

    def __repr__(self):
        return f"<Product {self.id} {self.name_uz}>"
