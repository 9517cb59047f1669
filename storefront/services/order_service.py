# storefront/services/order_service.py
import uuid
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models import AddressModel, OrderModel, PaymentRecordModel, UserModel
from storefront.domain.errors import AppError, ServerError, UserNotFound
from storefront.domain.order_status import OrderStatus, PaymentMethod, PaymentStatus
from storefront.domain.schemas import AddressIn, CartSummaryIn, CustomerIn
from storefront.repos.cart_repo import CartRepo
from storefront.repos.coupon_repo import CouponRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.payment_gateway import RazorpayGateway
from storefront.utils.settings import PAYMENT_CURRENCY
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class OrderService:
    """
    Serwis odpowiedzialny za tworzenie zamowien z koszyka.
    Status zamowienia: pending -> paid | cod_confirmed -> shipped.
    """

    def __init__(self, db: Session, gateway: RazorpayGateway):
        self.db = db
        self.repo = OrderRepo(db)
        self.users = UserRepo(db)
        self.carts = CartRepo(db)
        self.coupons = CouponRepo(db)
        self.gateway = gateway

    def create_order(
        self,
        user_id: int,
        customer: CustomerIn,
        address: AddressIn,
        payment_method: PaymentMethod,
        cart_summary: CartSummaryIn,
    ):
        """
        1. Aktualizuje profil i domyslny adres
        2. Tworzy payment intent w bramce
        3. Zapisuje zamowienie (pending) i rekord platnosci (initiated)
        4. Oznacza kupon jako wykorzystany (best-effort)
        """
        user = self.users.get_user(user_id)
        if not user:
            raise UserNotFound()

        total = cart_summary.total.quantize(Decimal("0.01"))

        try:
            full_name = f"{customer.first_name} {customer.last_name}".strip()
            user.name = full_name
            user.email = customer.email
            if address.phone_number and not user.phone_number:
                user.phone_number = address.phone_number

            self._upsert_default_address(user, full_name, address)

            intent_id = self.gateway.create_intent(
                amount_minor=to_minor_units(total),
                currency=PAYMENT_CURRENCY,
                receipt=f"receipt_{uuid.uuid4().hex[:20]}",
            )

            product_ids, product_count = self._cart_snapshot(user.id)

            order = self.repo.create_order(
                OrderModel(
                    user_id=user.id,
                    status=OrderStatus.PENDING.value,
                    total_amount=total,
                    product_ids=product_ids,
                    product_count=product_count,
                    payment_intent_id=intent_id,
                )
            )
            self.repo.create_payment(
                PaymentRecordModel(
                    order_id=order.id,
                    amount=total,
                    method_used=PaymentMethod(payment_method).value,
                    status=PaymentStatus.INITIATED.value,
                )
            )
            order_id = order.id
            self.repo.commit()

        except AppError:
            self.repo.rollback()
            raise
        except Exception as e:
            # wszystko ponizej tej warstwy -> ogolny SERVER_ERROR
            self.repo.rollback()
            logger.exception(f"Order creation failed for user {user_id}: {e}")
            raise ServerError("Order could not be created") from e

        logger.info(f"Order {order_id} created for user {user_id}, intent {intent_id}, total {total}")

        self._redeem_coupon(cart_summary)

        return {
            "order_id": order_id,
            "payment_intent_id": intent_id,
            "amount": total,
            "currency": PAYMENT_CURRENCY,
        }

    def _upsert_default_address(self, user: UserModel, full_name: str, address: AddressIn):
        fields = {
            "full_name": full_name,
            "address_line1": address.address_line,
            "address_line2": address.locality,
            "city": address.city,
            "state": address.state,
            "country": address.country,
            "postal_code": address.pincode,
        }
        if address.phone_number:
            fields["phone_number"] = address.phone_number

        existing = self.users.get_default_address(user.id)
        if existing:
            for key, value in fields.items():
                setattr(existing, key, value)
        else:
            self.users.add_address(
                AddressModel(user_id=user.id, is_active=True, is_default=True, **fields)
            )

    def _cart_snapshot(self, user_id: int):
        cart = self.carts.get_cart_by_user(user_id)
        if cart is None:
            return [], 0
        product_ids = list(dict.fromkeys(i.product_id for i in cart.items))
        return product_ids, cart.product_count

    def _redeem_coupon(self, cart_summary: CartSummaryIn):
        """Kupon jednorazowy. Blad tutaj nigdy nie cofa zamowienia."""
        if cart_summary.coupon_id is None and not cart_summary.coupon_code:
            return

        try:
            coupon = None
            if cart_summary.coupon_id is not None:
                coupon = self.coupons.get_coupon(cart_summary.coupon_id)
            if coupon is None and cart_summary.coupon_code:
                coupon = self.coupons.get_coupon_by_code(cart_summary.coupon_code)

            if coupon is None:
                logger.warning(
                    f"Coupon {cart_summary.coupon_id or cart_summary.coupon_code} not found, skipping"
                )
                return

            coupon.is_active = False
            self.db.commit()
            logger.info(f"Coupon {coupon.coupon_code} redeemed")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Coupon redemption failed: {e}")
