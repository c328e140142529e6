"""
Order Module - Service Layer
===============================
Checkout: turn the account's cart into an immutable order.

The item list is taken from the server-side cart. Callers may pass a subset
of the cart's product ids to check out only those items; anything not in the
cart is rejected.

All steps share one transaction: if any of them fails the session is rolled
back, so there is never an order without its items or a half-cleared cart.
"""

import logging
import uuid
from typing import List, Optional, Sequence

from sqlalchemy import delete, func
from sqlalchemy.orm import Session, selectinload

from common.exceptions import InternalInvariantError, ValidationError
from common.helpers import as_utc
from modules.cart.models import CartItem
from modules.cart.service import cart_service
from modules.order.models import Order, OrderItem

logger = logging.getLogger("storefront.order")


class OrderService:

    # ==========================================
    # Checkout
    # ==========================================

    def checkout(
        self, db: Session, account_id: uuid.UUID,
        product_ids: Optional[Sequence[uuid.UUID]] = None,
    ) -> Order:
        """
        Create an order from the account's cart:
        1. Resolve the cart and pick the items to check out
        2. Create the order
        3. Create one order item per product
        4. Remove exactly those products from the cart

        Raises:
            ValidationError (EmptyCart, ItemNotInCart) before anything is written
            InternalInvariantError (OrderCreationFailed, CartClearFailed) on row-count mismatch
        """
        try:
            cart = cart_service.get_cart(db, account_id)
            selected = self._select_items(cart_service.product_ids(db, cart.id), product_ids)

            order = self._create_order(db, account_id)

            self._create_order_items(db, order, selected)
            created = self._count_order_items(db, order.id)
            if created != len(selected):
                raise InternalInvariantError(
                    f"Expected {len(selected)} order items, created {created}",
                    kind="OrderCreationFailed",
                )

            cleared = self._clear_cart_items(db, cart.id, selected)
            if cleared != len(selected):
                raise InternalInvariantError(
                    f"Expected to clear {len(selected)} cart items, cleared {cleared}",
                    kind="CartClearFailed",
                )
        except Exception:
            db.rollback()
            raise

        logger.info(f"Order {order.id} created for account {account_id} with {len(selected)} items")
        return order

    # ==========================================
    # Queries
    # ==========================================

    def list_orders(self, db: Session, account_id: uuid.UUID) -> List[dict]:
        orders = (
            db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.user_id == account_id)
            .order_by(Order.created_at.desc())
            .all()
        )
        return [
            {
                "id": str(o.id),
                "createdAt": as_utc(o.created_at).isoformat(),
                "productIds": [str(i.product_id) for i in o.items],
            }
            for o in orders
        ]

    # ==========================================
    # Private helpers
    # ==========================================

    def _select_items(
        self, in_cart: List[uuid.UUID], requested: Optional[Sequence[uuid.UUID]],
    ) -> List[uuid.UUID]:
        if requested is None:
            selected = list(in_cart)
        else:
            selected = list(dict.fromkeys(requested))
            in_cart_set = set(in_cart)
            missing = [pid for pid in selected if pid not in in_cart_set]
            if missing:
                raise ValidationError(
                    f"Product {missing[0]} is not in the cart", kind="ItemNotInCart",
                )

        if not selected:
            raise ValidationError("Cart is empty", kind="EmptyCart")
        return selected

    def _create_order(self, db: Session, account_id: uuid.UUID) -> Order:
        order = Order(user_id=account_id)
        db.add(order)
        db.flush()  # get order.id
        return order

    def _create_order_items(self, db: Session, order: Order, product_ids: List[uuid.UUID]) -> None:
        db.add_all([OrderItem(order_id=order.id, product_id=pid) for pid in product_ids])
        db.flush()

    def _count_order_items(self, db: Session, order_id: uuid.UUID) -> int:
        return db.query(func.count(OrderItem.id)).filter(OrderItem.order_id == order_id).scalar()

    def _clear_cart_items(self, db: Session, cart_id: uuid.UUID, product_ids: List[uuid.UUID]) -> int:
        result = db.execute(
            delete(CartItem).where(
                CartItem.cart_id == cart_id,
                CartItem.product_id.in_(product_ids),
            )
        )
        return result.rowcount


# Singleton
order_service = OrderService()
