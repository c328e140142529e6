"""
Catalog Module - Service Layer
================================
Read-only product queries with images ordered by display_order.
"""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from common.exceptions import ValidationError
from common.helpers import as_utc, parse_uuid
from modules.catalog.models import Product, ProductImage


def serialize_image(image: ProductImage) -> dict:
    return {
        "id": str(image.id),
        "productId": str(image.product_id),
        "url": image.url,
        "displayOrder": image.display_order,
    }


def serialize_product(product: Product) -> dict:
    return {
        "id": str(product.id),
        "name": product.name,
        "description": product.description,
        "price": str(product.price),
        "createdAt": as_utc(product.created_at).isoformat() if product.created_at else None,
        "updatedAt": as_utc(product.updated_at).isoformat() if product.updated_at else None,
        "productImages": [serialize_image(img) for img in product.images],
    }


def parse_ids(raw_ids: List[str]) -> List[uuid.UUID]:
    """Convert id strings to UUIDs, rejecting the whole list if any is malformed."""
    parsed = [parse_uuid(value) for value in raw_ids]
    if any(pid is None for pid in parsed):
        raise ValidationError("Invalid product id", kind="InvalidIds")
    return parsed


class CatalogService:

    def _query(self, db: Session):
        return db.query(Product).options(selectinload(Product.images))

    def list_products(self, db: Session) -> List[Product]:
        return self._query(db).order_by(Product.created_at, Product.name).all()

    def get_products_by_ids(self, db: Session, product_ids: List[uuid.UUID]) -> List[Product]:
        if not product_ids:
            return []
        return (
            self._query(db)
            .filter(Product.id.in_(product_ids))
            .order_by(Product.created_at, Product.name)
            .all()
        )

    def get_product(self, db: Session, product_id: uuid.UUID) -> Optional[Product]:
        return self._query(db).filter(Product.id == product_id).first()


# Singleton
catalog_service = CatalogService()
