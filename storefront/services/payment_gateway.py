# storefront/services/payment_gateway.py
import hashlib
import hmac

import requests

from storefront.utils.settings import RAZORPAY_API_URL, RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET
from storefront.utils.retry import http_retry
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def payment_signature(secret: str, order_ref: str, payment_ref: str) -> str:
    """HMAC-SHA256 z "order_ref|payment_ref", jako hex."""
    body = f"{order_ref}|{payment_ref}".encode()
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class RazorpayGateway:
    """
    -tworzenie payment intent (order po stronie bramki) przed platnoscia
    -weryfikacja podpisu callbacku, porownanie w stalym czasie
    """

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        timeout: int = 5,
    ):
        self.key_id = key_id or RAZORPAY_KEY_ID
        self.key_secret = key_secret or RAZORPAY_KEY_SECRET
        self.base_url = (base_url or RAZORPAY_API_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def create_intent(self, amount_minor: int, currency: str, receipt: str) -> str:
        url = f"{self.base_url}/orders"
        logger.info(f"RazorpayGateway POST {url} amount={amount_minor} {currency} receipt={receipt}")

        resp = requests.post(
            url,
            json={
                "amount": amount_minor,
                "currency": currency,
                "receipt": receipt,
                "payment_capture": 1,
            },
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()["id"]

    def verify_signature(self, order_ref: str, payment_ref: str, signature: str | None) -> bool:
        if not signature or not order_ref or not payment_ref:
            return False
        expected = payment_signature(self.key_secret, order_ref, payment_ref)
        return hmac.compare_digest(expected, signature)
