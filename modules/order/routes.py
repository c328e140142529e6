"""
Order Routes
=============
Checkout and order history for the authenticated account.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from config.database import get_db
from common.deadline import ensure_before_deadline
from common.helpers import split_csv
from modules.auth.deps import require_account_id
from modules.catalog.service import parse_ids
from modules.order.service import order_service

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("")
def checkout(
    request: Request,
    product_id: Optional[str] = Query(None, alias="productId"),
    db: Session = Depends(get_db),
    account_id: uuid.UUID = Depends(require_account_id),
):
    """
    Check out the whole cart, or only the comma-joined productId subset of it.
    """
    selected = parse_ids(split_csv(product_id)) if product_id is not None else None

    order = order_service.checkout(db, account_id, selected)
    ensure_before_deadline(request)
    db.commit()

    return {
        "success": True,
        "data": {"orderId": str(order.id), "itemCount": len(order.items)},
    }


@router.get("")
def my_orders(
    db: Session = Depends(get_db),
    account_id: uuid.UUID = Depends(require_account_id),
):
    return {"data": order_service.list_orders(db, account_id)}
