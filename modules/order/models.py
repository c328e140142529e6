"""
Order Module - Models
======================
An order is an immutable snapshot of the products an account checked out.
"""

import uuid

from sqlalchemy import Column, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship
from config.database import Base
from common.helpers import now_utc


class Order(Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
