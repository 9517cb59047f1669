# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.domain.order_status import PaymentMethod


class APIModel(BaseModel):
    """Na zewnatrz camelCase (productId, errorCode), w kodzie snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# =====================================================
# CART
# =====================================================
class AddToCartIn(APIModel):
    product_id: int
    variant: str | None = None
    quantity: int = 1
    user_id: int | None = None
    session_token: str | None = None


class RemoveFromCartIn(APIModel):
    product_id: int
    variant: str | None = None
    session_token: str | None = None
    user_id: int | None = None
    cart_id: int | None = None
    remove_entirely: bool = False


class CartItemOut(APIModel):
    product_id: int
    variant: str
    quantity: int
    price: Decimal
    total_price: Decimal
    product_name: str | None = None
    product_image: str | None = None
    product_type: str | None = None


class CartOut(APIModel):
    id: int | None = None
    created_at: datetime | None = None
    user_id: int | None = None
    session_id: str | None = None
    items: List[CartItemOut] = []
    product_count: int = 0
    total_price: Decimal = Decimal("0")


class CartResponse(APIModel):
    error_code: str = "NO_ERROR"
    cart: CartOut | None = None


class SessionOut(APIModel):
    session_token: str


# =====================================================
# CHECKOUT / PAYMENT
# =====================================================
class CustomerIn(APIModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = ""
    email: str = Field(..., min_length=3)


class AddressIn(APIModel):
    address_line: str = Field(..., min_length=1)
    locality: str | None = None
    city: str
    state: str
    country: str
    pincode: str
    phone_number: str | None = None


class CartSummaryIn(APIModel):
    subtotal: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    shipping: Decimal = Decimal("0")
    total: Decimal = Field(..., gt=0)
    coupon_id: int | None = None
    coupon_code: str | None = None


class CreateOrderIn(APIModel):
    customer: CustomerIn
    address: AddressIn
    payment_method: PaymentMethod
    cart_summary: CartSummaryIn
    user_id: int


class CreateOrderData(APIModel):
    order_id: int
    payment_intent_id: str
    amount: Decimal
    currency: str


class CreateOrderResponse(APIModel):
    error_code: str = "NO_ERROR"
    data: CreateOrderData | None = None


class VerifyPaymentIn(APIModel):
    order_id: int
    upstream_order_ref: str | None = None
    upstream_payment_ref: str | None = None
    signature: str | None = None


class VerifyPaymentData(APIModel):
    order_id: int
    payment_id: int
    status: str
    tracking_id: str | None = None
    shipment_pending: bool = False


class VerifyPaymentResponse(APIModel):
    error_code: str = "NO_ERROR"
    data: VerifyPaymentData | None = None


class OrderPaymentOut(APIModel):
    method: str | None = None
    status: str | None = None
    amount: Decimal | None = None
    paid_at: datetime | None = None
    payment_ref: str | None = None


class OrderShippingOut(APIModel):
    status: str | None = None
    tracking_number: str | None = None
    location: str | None = None
    expected_delivery: str | None = None


class OrderSummaryOut(APIModel):
    order_id: int
    created_at: datetime
    order_status: str
    total_amount: Decimal
    product_ids: List[int] = []
    product_count: int = 0
    payment: OrderPaymentOut
    shipping: OrderShippingOut


class OrdersResponse(APIModel):
    error_code: str = "NO_ERROR"
    data: List[OrderSummaryOut] = []


class TrackingResponse(APIModel):
    error_code: str = "NO_ERROR"
    data: OrderShippingOut | None = None


# =====================================================
# IDENTITY
# =====================================================
class LoginIn(APIModel):
    session_token: str = Field(..., min_length=1)


class OtpAuthIn(APIModel):
    code: str = Field(..., min_length=1)
    session_token: str | None = None


class ProfileOut(APIModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""


class AddressOut(APIModel):
    address: str = ""
    locality: str = ""
    pincode: str = ""
    city: str = ""
    state: str = ""
    country: str = ""


class IdentityResponse(APIModel):
    error_code: str = "NO_ERROR"
    user_id: int | None = None
    user: ProfileOut | None = None
    address: AddressOut | None = None


class IssueOtpResponse(APIModel):
    error_code: str = "NO_ERROR"
    expires_at: datetime | None = None
