"""
Storefront - Demo Catalog Seeder
=================================
Creates missing tables and inserts a few products with ordered images.
Does nothing if products already exist.

Usage:
    python scripts/seed.py          # Seed if empty
    python scripts/seed.py --reset  # Drop all tables, recreate and reseed
"""

import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from modules.user.models import User  # noqa: F401
from modules.catalog.models import Product, ProductImage
from modules.cart.models import Cart, CartItem  # noqa: F401
from modules.order.models import Order, OrderItem  # noqa: F401


DEMO_PRODUCTS = [
    {
        "name": "Linen Shirt",
        "description": "Relaxed fit, washed linen.",
        "price": Decimal("59.00"),
        "images": ["/images/linen-shirt-front.jpg", "/images/linen-shirt-back.jpg"],
    },
    {
        "name": "Canvas Tote",
        "description": "Heavy canvas with inner pocket.",
        "price": Decimal("24.50"),
        "images": ["/images/canvas-tote.jpg"],
    },
    {
        "name": "Wool Beanie",
        "description": None,
        "price": Decimal("18.00"),
        "images": ["/images/wool-beanie.jpg", "/images/wool-beanie-detail.jpg"],
    },
]


def seed(db) -> int:
    """Insert DEMO_PRODUCTS unless the catalog already has rows. Returns products added."""
    if db.query(Product).first():
        print("Products already present, skipping.")
        return 0

    for entry in DEMO_PRODUCTS:
        product = Product(name=entry["name"], description=entry["description"], price=entry["price"])
        product.images = [
            ProductImage(url=url, display_order=order)
            for order, url in enumerate(entry["images"], start=1)
        ]
        db.add(product)

    db.commit()
    print(f"Seeded {len(DEMO_PRODUCTS)} products.")
    return len(DEMO_PRODUCTS)


def main(reset: bool = False):
    if reset:
        print("Dropping all tables...")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()


if __name__ == "__main__":
    main(reset="--reset" in sys.argv)
