import threading
import time
import uuid

import pytest
from fastapi.testclient import TestClient

from common.exceptions import InternalInvariantError, ValidationError
from common.security import hash_password
from config import settings
import modules.order.routes as order_routes
from modules.cart.models import CartItem
from modules.cart.service import cart_service
from modules.order.models import Order, OrderItem
from modules.order.service import OrderService, order_service
from modules.user.models import User

from conftest import register


def _add(client, product_id):
    return client.post(f"/cartItems/add?productId={product_id}")


# ---------- HTTP ----------

def test_checkout_whole_cart(logged_in, products, db):
    for pid in products:
        _add(logged_in, pid)

    resp = logged_in.post("/orders")

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["itemCount"] == 3

    order = db.get(Order, uuid.UUID(body["data"]["orderId"]))
    assert {str(i.product_id) for i in order.items} == set(products)
    assert logged_in.get("/cartItems").json() == {"data": []}


def test_checkout_selected_items_only(logged_in, products, db):
    shirt, tote, beanie = products
    for pid in products:
        _add(logged_in, pid)

    resp = logged_in.post(f"/orders?productId={shirt},{beanie}")

    assert resp.status_code == 200
    assert resp.json()["data"]["itemCount"] == 2
    remaining = [i["id"] for i in logged_in.get("/cartItems").json()["data"]]
    assert remaining == [tote]


def test_duplicate_ids_in_selection_count_once(logged_in, products):
    _add(logged_in, products[0])

    resp = logged_in.post(f"/orders?productId={products[0]},{products[0]}")

    assert resp.status_code == 200
    assert resp.json()["data"]["itemCount"] == 1


def test_checkout_rejects_products_not_in_cart(logged_in, products, db):
    _add(logged_in, products[0])

    resp = logged_in.post(f"/orders?productId={products[0]},{products[1]}")

    assert resp.status_code == 400
    assert resp.json()["error"] == "ItemNotInCart"
    assert db.query(Order).count() == 0
    assert len(logged_in.get("/cartItems").json()["data"]) == 1


def test_checkout_empty_cart(logged_in, db):
    resp = logged_in.post("/orders")

    assert resp.status_code == 400
    assert resp.json()["error"] == "EmptyCart"
    assert db.query(Order).count() == 0


def test_checkout_malformed_selection(logged_in, products):
    _add(logged_in, products[0])

    resp = logged_in.post("/orders?productId=abc")

    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidIds"


def test_order_history_newest_first(logged_in, products):
    shirt, tote, _ = products
    _add(logged_in, shirt)
    first = logged_in.post("/orders").json()["data"]["orderId"]
    _add(logged_in, tote)
    second = logged_in.post("/orders").json()["data"]["orderId"]

    orders = logged_in.get("/orders").json()["data"]

    assert [o["id"] for o in orders] == [second, first]
    assert orders[0]["productIds"] == [tote]
    assert orders[1]["productIds"] == [shirt]


def test_order_history_is_private(logged_in, products, app):
    _add(logged_in, products[0])
    logged_in.post("/orders")

    other = TestClient(app)
    register(other, "other@test.com")
    assert other.get("/orders").json() == {"data": []}


# ---------- service-level atomicity ----------

@pytest.fixture
def account_with_cart(db, products):
    """Account whose cart holds the first two products."""
    user = User(email="buyer@test.com", password_hash=hash_password("Abcdef1!", rounds=4))
    db.add(user)
    db.flush()
    cart = cart_service.ensure_cart(db, user.id)
    for pid in products[:2]:
        db.add(CartItem(cart_id=cart.id, product_id=uuid.UUID(pid)))
    db.commit()
    return user.id


def _snapshot(db):
    db.expire_all()
    return db.query(Order).count(), db.query(OrderItem).count(), db.query(CartItem).count()


def test_service_checkout_moves_cart_into_order(db, account_with_cart):
    order = order_service.checkout(db, account_with_cart)
    db.commit()

    assert len(order.items) == 2
    assert _snapshot(db) == (1, 2, 0)


def test_partial_cart_clear_rolls_everything_back(db, account_with_cart, monkeypatch):
    real_clear = OrderService._clear_cart_items

    def clear_only_first(session, cart_id, product_ids):
        return real_clear(order_service, session, cart_id, product_ids[:1])

    monkeypatch.setattr(order_service, "_clear_cart_items", clear_only_first)

    with pytest.raises(InternalInvariantError) as excinfo:
        order_service.checkout(db, account_with_cart)

    assert excinfo.value.kind == "CartClearFailed"
    assert _snapshot(db) == (0, 0, 2)


def test_short_order_item_insert_rolls_back(db, account_with_cart, monkeypatch):
    real_create = OrderService._create_order_items

    def insert_all_but_last(session, order, product_ids):
        real_create(order_service, session, order, product_ids[:-1])

    monkeypatch.setattr(order_service, "_create_order_items", insert_all_but_last)

    with pytest.raises(InternalInvariantError) as excinfo:
        order_service.checkout(db, account_with_cart)

    assert excinfo.value.kind == "OrderCreationFailed"
    assert _snapshot(db) == (0, 0, 2)


def test_unexpected_error_mid_checkout_rolls_back(db, account_with_cart, monkeypatch):
    def boom(session, order, product_ids):
        raise RuntimeError("disk full")

    monkeypatch.setattr(order_service, "_create_order_items", boom)

    with pytest.raises(RuntimeError):
        order_service.checkout(db, account_with_cart)

    assert _snapshot(db) == (0, 0, 2)


def test_checkout_without_cart_is_internal_error(db):
    user = User(email="nocart@test.com", password_hash="x")
    db.add(user)
    db.commit()

    with pytest.raises(InternalInvariantError) as excinfo:
        order_service.checkout(db, user.id)
    assert excinfo.value.kind == "CartNotFound"


def test_selection_outside_cart_writes_nothing(db, account_with_cart, products):
    with pytest.raises(ValidationError) as excinfo:
        order_service.checkout(db, account_with_cart, [uuid.UUID(products[2])])

    assert excinfo.value.kind == "ItemNotInCart"
    assert _snapshot(db) == (0, 0, 2)


def test_timed_out_checkout_leaves_cart_and_orders_untouched(logged_in, products, db, monkeypatch):
    for pid in products[:2]:
        _add(logged_in, pid)

    monkeypatch.setattr(settings, "REQUEST_TIMEOUT_SECONDS", 0.3)

    real_select = OrderService._select_items

    def slow_select(in_cart, requested):
        time.sleep(0.6)
        return real_select(order_service, in_cart, requested)

    monkeypatch.setattr(order_service, "_select_items", slow_select)

    handler_done = threading.Event()
    real_ensure = order_routes.ensure_before_deadline

    def ensure_and_signal(request):
        try:
            real_ensure(request)
        finally:
            handler_done.set()

    monkeypatch.setattr(order_routes, "ensure_before_deadline", ensure_and_signal)

    resp = logged_in.post("/orders")

    assert resp.status_code == 504
    assert resp.json()["error"] == "Timeout"
    # the handler thread may outlive the response; wait for it to finish
    assert handler_done.wait(5)
    time.sleep(0.1)
    assert _snapshot(db) == (0, 0, 2)
