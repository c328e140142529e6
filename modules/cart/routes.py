"""
Cart Routes
============
List, add and remove items in the authenticated account's cart.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from config.database import get_db
from common.deadline import ensure_before_deadline
from modules.auth.deps import require_account_id
from modules.cart.service import cart_service
from modules.catalog.service import parse_ids

router = APIRouter(prefix="/cartItems", tags=["cart"])


# ==========================================
# 🛒 View Cart
# ==========================================

@router.get("")
def list_cart_items(
    db: Session = Depends(get_db),
    account_id: uuid.UUID = Depends(require_account_id),
):
    cart = cart_service.get_cart(db, account_id)
    return {"data": cart_service.list_items(db, cart.id)}


# ==========================================
# ➕ Add Item
# ==========================================

@router.post("/add", status_code=201)
def add_cart_item(
    request: Request,
    product_id: str = Query(..., alias="productId"),
    db: Session = Depends(get_db),
    account_id: uuid.UUID = Depends(require_account_id),
):
    [pid] = parse_ids([product_id])
    cart_service.add_item(db, account_id, pid)
    ensure_before_deadline(request)
    db.commit()
    return JSONResponse({"success": True}, status_code=201)


# ==========================================
# ➖ Remove Item
# ==========================================

@router.delete("/{product_id}")
def remove_cart_item(
    request: Request,
    product_id: str,
    db: Session = Depends(get_db),
    account_id: uuid.UUID = Depends(require_account_id),
):
    [pid] = parse_ids([product_id])
    cart_service.remove_item(db, account_id, pid)
    ensure_before_deadline(request)
    db.commit()
    return {"success": True}
