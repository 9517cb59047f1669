# storefront/domain/pricing.py
from decimal import Decimal, InvalidOperation

from storefront.domain.errors import InvalidVariant, InvalidPrice


def resolve_price(product, variant: str) -> Decimal:
    """
    Cena jednostkowa wariantu: cena promocyjna wygrywa z bazowa.

    `product` potrzebuje tylko `sizes`, `size_prices` i `discounted_prices`,
    wiec dziala na modelu ORM i na zwyklym obiekcie.
    """
    if variant not in (product.sizes or []):
        raise InvalidVariant()

    discounted = (product.discounted_prices or {}).get(variant)
    base = (product.size_prices or {}).get(variant)
    raw = discounted if discounted is not None else base

    if raw is None:
        raise InvalidPrice()

    try:
        price = Decimal(str(raw))
    except InvalidOperation:
        raise InvalidPrice()

    if price <= 0:
        raise InvalidPrice()

    return price.quantize(Decimal("0.01"))
