# storefront/domain/order_status.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    COD_CONFIRMED = "cod_confirmed"
    SHIPPED = "shipped"


class PaymentMethod(str, Enum):
    ONLINE = "ONLINE"
    COD = "COD"


class PaymentStatus(str, Enum):
    INITIATED = "initiated"
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"  # COD - pobranie przy dostawie


# tylko do przodu, bez przeskakiwania krokow
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.COD_CONFIRMED},
    OrderStatus.PAID: {OrderStatus.SHIPPED},
    OrderStatus.COD_CONFIRMED: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: set(),
}


class InvalidTransition(Exception):
    pass


def advance(order, target: OrderStatus) -> bool:
    """
    Przesuwa `order.status` na `target`.

    False gdy zamowienie juz tam jest (powtorzony callback),
    InvalidTransition dla przejsc spoza ORDER_TRANSITIONS.
    """
    current = OrderStatus(order.status)
    if current == target:
        return False
    if target not in ORDER_TRANSITIONS[current]:
        raise InvalidTransition(f"Order {order.id}: {current.value} -> {target.value} not allowed")
    order.status = target.value
    return True
