"""
Catalog Module - Models
========================
Product and its ordered images. Read-mostly; nothing in the cart/order flow mutates them.
"""

import uuid

from sqlalchemy import (
    Column, Integer, String, Text, Numeric,
    ForeignKey, DateTime, Uuid,
)
from sqlalchemy.orm import relationship
from config.database import Base
from common.helpers import now_utc


# ==========================================
# 📦 Product
# ==========================================

class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.display_order",
    )

    def __repr__(self):
        return f"<Product {self.name}>"


# ==========================================
# 🖼️ Product Image
# ==========================================

class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(255), nullable=False)
    display_order = Column(Integer, nullable=False)

    product = relationship("Product", back_populates="images")
