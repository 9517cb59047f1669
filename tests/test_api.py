from decimal import Decimal

from fastapi.testclient import TestClient

from storefront.api import create_app
from storefront.data.models import ApiLogModel, OrderModel, UserModel


def add(client, product_id, variant="small", **extra):
    return client.post("/carts/addToCart", json={"productId": product_id, "variant": variant, **extra})


def test_session_endpoint_sets_cookie(client):
    resp = client.get("/session")

    assert resp.status_code == 200
    token = resp.json()["sessionToken"]
    assert resp.cookies.get("SESSION_ID") == token

    again = client.get("/session")
    assert again.json()["sessionToken"] == token


def test_add_to_cart_with_session_cookie(client, product):
    client.get("/session")

    resp = add(client, product.id, quantity=2)

    body = resp.json()
    assert resp.status_code == 200
    assert body["errorCode"] == "NO_ERROR"
    assert Decimal(body["cart"]["totalPrice"]) == Decimal("160")
    assert body["cart"]["items"][0]["productName"] == "Himalayan Pink Salt"

    cart = client.get("/carts").json()["cart"]
    assert cart["productCount"] == 2


def test_add_to_cart_error_codes(client, product):
    token = client.get("/session").json()["sessionToken"]

    missing_variant = client.post("/carts/addToCart", json={"productId": product.id, "sessionToken": token})
    assert (missing_variant.status_code, missing_variant.json()["errorCode"]) == (400, "WEIGHT_REQUIRED")

    bad_variant = add(client, product.id, "medium", sessionToken=token)
    assert bad_variant.json()["errorCode"] == "INVALID_WEIGHT"

    unknown = add(client, 999, sessionToken=token)
    assert (unknown.status_code, unknown.json()["errorCode"]) == (404, "PRODUCT_NOT_FOUND")


def test_cart_requires_owner(client, product):
    resp = add(client, product.id)
    assert (resp.status_code, resp.json()["errorCode"]) == (400, "SESSION_REQUIRED")


def test_malformed_body(client):
    resp = client.post("/carts/addToCart", json={"variant": "small"})
    assert (resp.status_code, resp.json()["errorCode"]) == (400, "INVALID_REQUEST")


def test_remove_last_item_returns_empty_cart(client, product):
    client.get("/session")
    add(client, product.id)

    resp = client.post("/carts/removeFromCart", json={"productId": product.id, "variant": "small"})

    cart = resp.json()["cart"]
    assert cart["items"] == []
    assert cart["id"] is None
    assert Decimal(cart["totalPrice"]) == 0


def test_remove_with_foreign_cart_id(client, product):
    client.get("/session")
    cart_id = add(client, product.id).json()["cart"]["id"]

    resp = client.post(
        "/carts/removeFromCart",
        json={"productId": product.id, "variant": "small", "sessionToken": "other-guest", "cartId": cart_id},
    )
    assert (resp.status_code, resp.json()["errorCode"]) == (403, "CART_ACCESS_DENIED")


def test_login_promotes_session_cart(client, product, db):
    token = client.get("/session").json()["sessionToken"]
    add(client, product.id, "large")

    resp = client.post("/users/login", json={"sessionToken": token})

    body = resp.json()
    assert body["errorCode"] == "NO_ERROR"
    user_id = body["userId"]
    assert db.get(UserModel, user_id).session_id == token

    cart = client.get("/carts", params={"userId": user_id}).json()["cart"]
    assert cart["userId"] == user_id
    assert cart["productCount"] == 1


def test_otp_flow(client, user, notifier):
    issued = client.post(f"/users/{user.id}/otp")
    assert issued.status_code == 200
    assert "code" not in issued.json()
    code = notifier.calls[-1][3]

    ok = client.post("/users/otpAuth", json={"code": code})
    assert ok.json()["userId"] == user.id
    assert ok.json()["user"]["email"] == "asha@example.com"

    replay = client.post("/users/otpAuth", json={"code": code})
    assert (replay.status_code, replay.json()["errorCode"]) == (401, "INVALID_OTP")


def test_checkout_to_shipment(client, user, product, gateway, carrier, sign, db):
    add(client, product.id, userId=user.id, quantity=3)

    created = client.post(
        "/orders/createOrder",
        json={
            "userId": user.id,
            "paymentMethod": "ONLINE",
            "customer": {"firstName": "Asha", "lastName": "Rao", "email": "asha@example.com"},
            "address": {
                "addressLine": "12 MG Road",
                "locality": "Indiranagar",
                "city": "Bengaluru",
                "state": "Karnataka",
                "country": "India",
                "pincode": "560038",
                "phoneNumber": "9876543210",
            },
            "cartSummary": {"subtotal": 240, "total": 240},
        },
    ).json()
    assert created["errorCode"] == "NO_ERROR"
    order_id = created["data"]["orderId"]
    intent = created["data"]["paymentIntentId"]

    bad = client.post(
        "/orders/verifyPayment",
        json={"orderId": order_id, "upstreamOrderRef": intent, "upstreamPaymentRef": "pay_1", "signature": "nope"},
    )
    assert (bad.status_code, bad.json()["errorCode"]) == (400, "INVALID_SIGNATURE")

    good = client.post(
        "/orders/verifyPayment",
        json={
            "orderId": order_id,
            "upstreamOrderRef": intent,
            "upstreamPaymentRef": "pay_1",
            "signature": sign(intent, "pay_1"),
        },
    ).json()
    assert good["data"]["status"] == "shipped"
    assert good["data"]["trackingId"].startswith("WB")

    orders = client.get(f"/orders/by-user/{user.id}").json()["data"]
    assert len(orders) == 1
    assert orders[0]["orderStatus"] == "shipped"
    assert orders[0]["productIds"] == [product.id]
    assert orders[0]["payment"]["status"] == "success"
    assert orders[0]["payment"]["paymentRef"] == "pay_1"
    assert orders[0]["shipping"]["trackingNumber"] == good["data"]["trackingId"]
    assert orders[0]["shipping"]["status"] == "In Transit"


def test_create_order_rejects_non_positive_total(client, user):
    resp = client.post(
        "/orders/createOrder",
        json={
            "userId": user.id,
            "paymentMethod": "COD",
            "customer": {"firstName": "Asha", "email": "asha@example.com"},
            "address": {"addressLine": "x", "city": "c", "state": "s", "country": "IN", "pincode": "1"},
            "cartSummary": {"total": 0},
        },
    )
    assert resp.json()["errorCode"] == "INVALID_REQUEST"


def test_verify_unknown_order(client):
    resp = client.post("/orders/verifyPayment", json={"orderId": 555})
    assert (resp.status_code, resp.json()["errorCode"]) == (404, "ORDER_NOT_FOUND")


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_order_tracking_endpoint(client, user, db):
    order = OrderModel(user_id=user.id, status="paid", total_amount=Decimal("10"), product_ids=[], product_count=0)
    db.add(order)
    db.commit()

    resp = client.get(f"/orders/{order.id}/tracking")
    assert resp.json() == {
        "errorCode": "NO_ERROR",
        "data": {"status": None, "trackingNumber": None, "location": None, "expectedDelivery": None},
    }

    missing = client.get("/orders/9999/tracking")
    assert (missing.status_code, missing.json()["errorCode"]) == (404, "ORDER_NOT_FOUND")


def test_unhandled_error_is_recorded_in_api_log(db):
    app = create_app(api_log=True)

    @app.get("/explode")
    def explode():
        raise RuntimeError("kaboom")

    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.get("/explode")
        ok = c.get("/health")

    assert (resp.status_code, resp.json()["errorCode"]) == (500, "SERVER_ERROR")
    assert ok.status_code == 200
    rows = {(r.endpoint, r.status_code) for r in db.query(ApiLogModel).all()}
    assert rows == {("/explode", 500), ("/health", 200)}
