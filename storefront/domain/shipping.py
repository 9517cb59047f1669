# storefront/domain/shipping.py
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

ORDER_REF_MAX_LENGTH = 45

_UNSAFE_CHARS = re.compile(r"[&#%;\\]")
_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class Consignee:
    """Odbiorca w chwili nadania - kopia, nie referencja do adresu."""

    name: str
    phone: str
    address: str
    pin: str
    country: str
    city: str | None = None
    state: str | None = None


@dataclass(frozen=True)
class Parcel:
    weight: int = 500  # gramy
    quantity: int = 1
    width: int = 10  # cm
    height: int = 10
    length: int = 10
    description: str = "General Merchandise"


def sanitize(value: str | None) -> str:
    return _UNSAFE_CHARS.sub("", value or "").strip()


def normalize_phone(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")[-10:]


def order_reference(order_id) -> str:
    return sanitize(f"ORD_{order_id}")[:ORDER_REF_MAX_LENGTH]


def build_shipment_payload(
    consignee: Consignee,
    order_ref: str,
    payment_mode: str,
    total_amount: Decimal,
    pickup_location: str,
    seller_name: str,
    parcel: Parcel | None = None,
    order_date: date | None = None,
) -> dict:
    parcel = parcel or Parcel()
    order_date = order_date or date.today()
    total = float(total_amount)

    return {
        "pickup_location": {"name": pickup_location},
        "shipments": [
            {
                "name": sanitize(consignee.name),
                "add": sanitize(consignee.address),
                "pin": sanitize(consignee.pin),
                "phone": normalize_phone(consignee.phone),
                "country": sanitize(consignee.country),
                "state": sanitize(consignee.state),
                "city": sanitize(consignee.city),
                "order": sanitize(order_ref)[:ORDER_REF_MAX_LENGTH],
                "order_date": order_date.isoformat(),
                "payment_mode": payment_mode,
                "total_amount": total,
                "cod_amount": total if payment_mode == "COD" else 0,
                "shipping_mode": "Surface",
                "weight": parcel.weight,
                "quantity": parcel.quantity,
                "shipment_width": parcel.width,
                "shipment_height": parcel.height,
                "shipment_length": parcel.length,
                "products_desc": sanitize(parcel.description),
                "seller_name": sanitize(seller_name),
                "address_type": "home",
            }
        ],
    }
