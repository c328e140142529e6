"""
Cart Module - Service Layer
==============================
Cart management: resolve/create the account's cart, list, add and remove items.

A product is either in the cart or not; adding it twice is a conflict,
never a quantity bump. Methods flush but do not commit; the route owns
the transaction.
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from common.exceptions import ConflictError, InternalInvariantError, NotFoundError
from modules.cart.models import Cart, CartItem
from modules.catalog.models import Product

logger = logging.getLogger("storefront.cart")


class CartService:

    def find_cart(self, db: Session, account_id: uuid.UUID):
        return db.query(Cart).filter(Cart.user_id == account_id).first()

    def get_cart(self, db: Session, account_id: uuid.UUID) -> Cart:
        """Every account gets a cart at register/login, so a miss here is a bug, not a user error."""
        cart = self.find_cart(db, account_id)
        if not cart:
            logger.error("Account %s has no cart", account_id)
            raise InternalInvariantError("Cart not found", kind="CartNotFound")
        return cart

    def ensure_cart(self, db: Session, account_id: uuid.UUID) -> Cart:
        """Get existing cart or create (and flush) a new one."""
        cart = self.find_cart(db, account_id)
        if not cart:
            cart = Cart(user_id=account_id)
            db.add(cart)
            db.flush()
            logger.info("Created cart %s for account %s", cart.id, account_id)
        return cart

    def list_items(self, db: Session, cart_id: uuid.UUID) -> List[dict]:
        """Products in the cart with their images (url/displayOrder only), oldest item first."""
        items = (
            db.query(CartItem)
            .options(selectinload(CartItem.product).selectinload(Product.images))
            .filter(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at, CartItem.id)
            .all()
        )
        return [
            {
                "id": str(item.product.id),
                "name": item.product.name,
                "price": str(item.product.price),
                "productImages": [
                    {"url": img.url, "displayOrder": img.display_order}
                    for img in item.product.images
                ],
            }
            for item in items
        ]

    def product_ids(self, db: Session, cart_id: uuid.UUID) -> List[uuid.UUID]:
        rows = (
            db.query(CartItem.product_id)
            .filter(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at, CartItem.id)
            .all()
        )
        return [pid for (pid,) in rows]

    def add_item(self, db: Session, account_id: uuid.UUID, product_id: uuid.UUID) -> CartItem:
        cart = self.get_cart(db, account_id)

        if not db.get(Product, product_id):
            raise NotFoundError("Product not found", kind="ProductNotFound")

        existing = db.query(CartItem).filter(
            CartItem.cart_id == cart.id,
            CartItem.product_id == product_id,
        ).first()
        if existing:
            raise ConflictError("Product already in cart", kind="DuplicateItem")

        item = CartItem(cart_id=cart.id, product_id=product_id)
        db.add(item)
        try:
            db.flush()
        except IntegrityError:
            # Concurrent add of the same product won the race on uq_cart_product
            db.rollback()
            raise ConflictError("Product already in cart", kind="DuplicateItem")

        logger.info("Added product %s to cart %s", product_id, cart.id)
        return item

    def remove_item(self, db: Session, account_id: uuid.UUID, product_id: uuid.UUID) -> None:
        cart = self.get_cart(db, account_id)

        result = db.execute(
            delete(CartItem).where(
                CartItem.cart_id == cart.id,
                CartItem.product_id == product_id,
            )
        )
        if result.rowcount == 0:
            raise NotFoundError("Cart item not found", kind="ItemNotFound")

        logger.info("Removed product %s from cart %s", product_id, cart.id)


# Singleton
cart_service = CartService()
