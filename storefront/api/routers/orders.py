# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_order_service, get_payment_service, get_shipment_coordinator
from storefront.domain.schemas import (
    CreateOrderIn,
    CreateOrderResponse,
    OrdersResponse,
    TrackingResponse,
    VerifyPaymentIn,
    VerifyPaymentResponse,
)
from storefront.services.order_service import OrderService
from storefront.services.payment_service import PaymentService
from storefront.services.shipment_service import ShipmentCoordinator

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/createOrder", response_model=CreateOrderResponse)
def create_order(
    payload: CreateOrderIn,
    svc: OrderService = Depends(get_order_service),
):
    """
    Zamowienie (pending) + payment intent. Klient placi poza systemem
    i wraca z callbackiem na /orders/verifyPayment.
    """
    data = svc.create_order(
        user_id=payload.user_id,
        customer=payload.customer,
        address=payload.address,
        payment_method=payload.payment_method,
        cart_summary=payload.cart_summary,
    )
    return {"data": data}


@router.post("/verifyPayment", response_model=VerifyPaymentResponse)
def verify_payment(
    payload: VerifyPaymentIn,
    svc: PaymentService = Depends(get_payment_service),
):
    data = svc.verify(
        order_id=payload.order_id,
        upstream_order_ref=payload.upstream_order_ref,
        upstream_payment_ref=payload.upstream_payment_ref,
        signature=payload.signature,
    )
    return {"data": data}


@router.get("/by-user/{user_id}", response_model=OrdersResponse)
def orders_by_user(
    user_id: int,
    svc: ShipmentCoordinator = Depends(get_shipment_coordinator),
):
    """
    Zamowienia usera z platnoscia i statusem przesylki (live albo ostatni znany).
    """
    return {"data": svc.list_orders_with_tracking(user_id)}


@router.get("/{order_id}/tracking", response_model=TrackingResponse)
def order_tracking(
    order_id: int,
    svc: ShipmentCoordinator = Depends(get_shipment_coordinator),
):
    return {"data": svc.order_tracking(order_id)}
