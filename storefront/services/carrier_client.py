# storefront/services/carrier_client.py
import json

import requests

from storefront.utils.settings import (
    CARRIER_SYSTEM,
    LOCAL_CARRIER_URL,
    PROD_CARRIER_URL,
    LOCAL_CARRIER_TRACK_URL,
    PROD_CARRIER_TRACK_URL,
    CARRIER_API_KEY,
    CARRIER_TIMEOUT_SECONDS,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CarrierError(Exception):
    """Przewoznik odrzucil zlecenie albo nie zwrocil numeru przesylki."""


class DelhiveryClient:
    def __init__(
        self,
        create_url: str | None = None,
        track_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        local = CARRIER_SYSTEM == "LOCAL"
        self.create_url = create_url or (LOCAL_CARRIER_URL if local else PROD_CARRIER_URL)
        self.track_url = track_url or (LOCAL_CARRIER_TRACK_URL if local else PROD_CARRIER_TRACK_URL)
        self.api_key = api_key or CARRIER_API_KEY
        self.timeout = timeout or CARRIER_TIMEOUT_SECONDS

    def _headers(self) -> dict:
        return {"Authorization": f"Token {self.api_key}"}

    def create_shipment(self, payload: dict) -> dict:
        """
        Jedna proba, bez retry - retry i powiadomienia sa w ShipmentCoordinator.

        Zwraca {waybill, order_ref, status, sort_code, raw}.
        """
        logger.info(f"DelhiveryClient POST {self.create_url}")

        resp = requests.post(
            self.create_url,
            data={"format": "json", "data": json.dumps(payload)},
            headers=self._headers(),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        body = resp.json()

        packages = body.get("packages") or [{}]
        pkg = packages[0] or {}
        if not pkg.get("waybill"):
            raise CarrierError(pkg.get("rmk") or body.get("rmk") or "Carrier shipment creation failed")

        return {
            "waybill": pkg["waybill"],
            "order_ref": pkg.get("refnum") or pkg.get("order"),
            "status": pkg.get("status") or "created",
            "sort_code": pkg.get("sort_code"),
            "raw": body,
        }

    def track(self, waybill: str) -> dict:
        """Zwraca {status, location, expected_delivery}."""
        resp = requests.get(
            self.track_url,
            params={"waybill": waybill},
            headers=self._headers(),
            timeout=self.timeout,
        )
        resp.raise_for_status()

        data = resp.json().get("ShipmentData") or []
        shipment = data[0].get("Shipment") if data else None
        if not shipment:
            raise CarrierError(f"No tracking data for {waybill}")

        status = shipment.get("Status") or {}
        return {
            "status": status.get("Status"),
            "location": status.get("StatusLocation") or status.get("Location"),
            "expected_delivery": shipment.get("ExpectedDeliveryDate"),
        }
