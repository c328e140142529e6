"""
Catalog Routes
===============
Public product listing and lookup.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import parse_uuid, split_csv
from modules.catalog.service import catalog_service, serialize_product, parse_ids

router = APIRouter(prefix="/products", tags=["catalog"])


@router.get("")
def list_products(db: Session = Depends(get_db)):
    return {"data": [serialize_product(p) for p in catalog_service.list_products(db)]}


@router.get("/ids")
def products_by_ids(ids: str = Query(...), db: Session = Depends(get_db)):
    """Products for a comma-joined id list, e.g. /products/ids?ids=a,b,c."""
    product_ids = parse_ids(split_csv(ids))
    return {"data": [serialize_product(p) for p in catalog_service.get_products_by_ids(db, product_ids)]}


@router.get("/{product_id}")
def get_product(product_id: str, db: Session = Depends(get_db)):
    pid = parse_uuid(product_id)
    product = catalog_service.get_product(db, pid) if pid else None
    return {"data": serialize_product(product) if product else None}
