import hashlib
import hmac

from storefront.services import payment_gateway
from storefront.services.payment_gateway import RazorpayGateway, payment_signature


def test_signature_is_hmac_sha256_hex():
    expected = hmac.new(b"s3cret", b"order_1|pay_1", hashlib.sha256).hexdigest()
    assert payment_signature("s3cret", "order_1", "pay_1") == expected


def test_verify_signature():
    gateway = RazorpayGateway(key_id="id", key_secret="s3cret")
    good = payment_signature("s3cret", "order_1", "pay_1")

    assert gateway.verify_signature("order_1", "pay_1", good)
    assert not gateway.verify_signature("order_1", "pay_2", good)
    assert not gateway.verify_signature("order_1", "pay_1", "")
    assert not gateway.verify_signature("", "pay_1", good)


def test_create_intent_posts_minor_units(monkeypatch):
    seen = {}

    class Resp:
        def raise_for_status(self):
            pass

        def json(self):
            return {"id": "order_ABC"}

    def fake_post(url, json, auth, timeout):
        seen.update(url=url, json=json, auth=auth)
        return Resp()

    monkeypatch.setattr(payment_gateway.requests, "post", fake_post)

    gateway = RazorpayGateway(key_id="id", key_secret="s3cret", base_url="http://gw.test/v1/")
    assert gateway.create_intent(24000, "INR", "receipt_1") == "order_ABC"
    assert seen["url"] == "http://gw.test/v1/orders"
    assert seen["json"]["amount"] == 24000
    assert seen["auth"] == ("id", "s3cret")
