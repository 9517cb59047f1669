from datetime import date
from decimal import Decimal

from storefront.domain.shipping import (
    Consignee,
    Parcel,
    build_shipment_payload,
    normalize_phone,
    order_reference,
    sanitize,
)


def test_sanitize_strips_carrier_unsafe_characters():
    assert sanitize("  Flat #4; B&B Road 50% \\ ") == "Flat 4 BB Road 50"
    assert sanitize(None) == ""


def test_phone_keeps_last_ten_digits():
    assert normalize_phone("+91 (987) 654-3210") == "9876543210"
    assert normalize_phone("12345") == "12345"


def test_order_reference_is_truncated():
    assert order_reference(17) == "ORD_17"
    assert len(order_reference("9" * 80)) == 45


def test_payload_defaults():
    consignee = Consignee(
        name="Asha Rao", phone="+91 98765 43210", address="12 MG Road", pin="560038", country="India"
    )

    payload = build_shipment_payload(
        consignee,
        order_ref="ORD_1",
        payment_mode="Prepaid",
        total_amount=Decimal("240.00"),
        pickup_location="Main Warehouse",
        seller_name="Storefront",
        order_date=date(2026, 1, 2),
    )

    assert payload["pickup_location"] == {"name": "Main Warehouse"}
    shipment = payload["shipments"][0]
    assert shipment["shipping_mode"] == "Surface"
    assert shipment["weight"] == 500
    assert shipment["quantity"] == 1
    assert (shipment["shipment_width"], shipment["shipment_height"], shipment["shipment_length"]) == (10, 10, 10)
    assert shipment["products_desc"] == "General Merchandise"
    assert shipment["order_date"] == "2026-01-02"
    assert shipment["cod_amount"] == 0
    assert shipment["address_type"] == "home"


def test_cod_payload_collects_total():
    consignee = Consignee(name="A", phone="9876543210", address="X", pin="1", country="IN")

    payload = build_shipment_payload(
        consignee, "ORD_2", "COD", Decimal("99.50"), "WH", "Shop", parcel=Parcel(weight=1200)
    )

    shipment = payload["shipments"][0]
    assert shipment["cod_amount"] == 99.5
    assert shipment["total_amount"] == 99.5
    assert shipment["weight"] == 1200
