import json

import pytest

from storefront.services import carrier_client
from storefront.services.carrier_client import CarrierError, DelhiveryClient


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def json(self):
        return self.body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise carrier_client.requests.HTTPError(f"{self.status_code} error")


@pytest.fixture
def client():
    return DelhiveryClient(create_url="http://carrier.test/create", track_url="http://carrier.test/track", api_key="k3y")


def test_create_sends_form_encoded_payload(client, monkeypatch):
    seen = {}

    def fake_post(url, data, headers, timeout):
        seen.update(url=url, data=data, headers=headers)
        return FakeResponse({"packages": [{"waybill": "WB1", "refnum": "ORD_1", "status": "Success"}]})

    monkeypatch.setattr(carrier_client.requests, "post", fake_post)

    result = client.create_shipment({"shipments": [{"order": "ORD_1"}]})

    assert result["waybill"] == "WB1"
    assert result["order_ref"] == "ORD_1"
    assert seen["headers"] == {"Authorization": "Token k3y"}
    assert seen["data"]["format"] == "json"
    assert json.loads(seen["data"]["data"]) == {"shipments": [{"order": "ORD_1"}]}


def test_missing_waybill_surfaces_carrier_remark(client, monkeypatch):
    monkeypatch.setattr(
        carrier_client.requests,
        "post",
        lambda *a, **kw: FakeResponse({"packages": [{"status": "Fail", "rmk": "Crashing pincode"}]}),
    )

    with pytest.raises(CarrierError, match="Crashing pincode"):
        client.create_shipment({})


def test_track_parses_status(client, monkeypatch):
    body = {
        "ShipmentData": [
            {
                "Shipment": {
                    "Status": {"Status": "In Transit", "StatusLocation": "Mumbai_Hub"},
                    "ExpectedDeliveryDate": "2026-10-22T00:00:00",
                }
            }
        ]
    }
    monkeypatch.setattr(carrier_client.requests, "get", lambda *a, **kw: FakeResponse(body))

    assert client.track("WB1") == {
        "status": "In Transit",
        "location": "Mumbai_Hub",
        "expected_delivery": "2026-10-22T00:00:00",
    }


def test_track_without_data(client, monkeypatch):
    monkeypatch.setattr(carrier_client.requests, "get", lambda *a, **kw: FakeResponse({"ShipmentData": []}))

    with pytest.raises(CarrierError):
        client.track("WB404")
