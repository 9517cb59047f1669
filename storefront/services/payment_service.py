# storefront/services/payment_service.py
from typing import Dict, Any

from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from storefront.data.models import OrderModel
from storefront.domain.errors import AddressMissing, InvalidSignature, OrderNotFound, PaymentNotFound
from storefront.domain.order_status import OrderStatus, PaymentMethod, PaymentStatus, advance
from storefront.domain.shipping import Consignee
from storefront.repos.order_repo import OrderRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.payment_gateway import RazorpayGateway
from storefront.services.shipment_service import ShipmentCoordinator, ShipmentFailed, ShipmentInProgress
from storefront.utils.timeutils import utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class PaymentService:
    """
    Jedyne miejsce, gdzie potwierdzenie platnosci jest weryfikowane.
    Po potwierdzeniu zakladana jest przesylka - jej porazka nie cofa platnosci.
    """

    def __init__(self, db: Session, gateway: RazorpayGateway, shipments: ShipmentCoordinator):
        self.repo = OrderRepo(db)
        self.users = UserRepo(db)
        self.gateway = gateway
        self.shipments = shipments

    def verify(
        self,
        order_id: int,
        upstream_order_ref: str | None,
        upstream_payment_ref: str | None,
        signature: str | None,
    ) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise OrderNotFound()

        payment = self.repo.get_payment(order.id)
        if not payment:
            raise PaymentNotFound()

        if payment.method_used == PaymentMethod.ONLINE.value:
            self._confirm_online(order, payment, upstream_order_ref, upstream_payment_ref, signature)
        else:
            self._confirm_cod(order, payment)

        payment_id = payment.id

        # retry callbacku klienta - przesylka juz jest
        existing = self.shipments.existing(order.id)
        if existing:
            if advance(order, OrderStatus.SHIPPED):
                self.repo.commit()
            logger.info(f"Order {order.id} already has shipment {existing.waybill}")
            return self._result(order, payment_id, existing.waybill)

        consignee = self._consignee(order)

        try:
            shipment = self.shipments.create(order, consignee)
        except (ShipmentFailed, ShipmentInProgress, RedisError) as e:
            logger.warning(f"Order {order.id} confirmed, shipment pending: {e}")
            return self._result(order, payment_id, None, shipment_pending=True)

        return self._result(order, payment_id, shipment.waybill)

    def _confirm_online(self, order: OrderModel, payment, upstream_order_ref, upstream_payment_ref, signature):
        intent_matches = bool(upstream_order_ref) and upstream_order_ref == order.payment_intent_id
        if not intent_matches or not self.gateway.verify_signature(
            upstream_order_ref, upstream_payment_ref, signature
        ):
            # juz potwierdzonej platnosci nie psujemy podrobionym callbackiem
            if payment.status != PaymentStatus.SUCCESS.value:
                payment.status = PaymentStatus.FAILED.value
                payment.updated_at = utcnow()
                self.repo.commit()
            logger.critical(
                f"Payment signature mismatch for order {order.id} "
                f"(intent {order.payment_intent_id}, upstream order {upstream_order_ref}, "
                f"upstream payment {upstream_payment_ref})"
            )
            raise InvalidSignature()

        advance_to_paid = order.status == OrderStatus.PENDING.value
        if advance_to_paid:
            advance(order, OrderStatus.PAID)
        if payment.status != PaymentStatus.SUCCESS.value:
            payment.status = PaymentStatus.SUCCESS.value
            payment.updated_at = utcnow()
        order.payment_ref = order.payment_ref or upstream_payment_ref
        self.repo.commit()

        logger.info(f"Payment {upstream_payment_ref} verified for order {order.id}")

    def _confirm_cod(self, order: OrderModel, payment):
        if order.status == OrderStatus.PENDING.value:
            advance(order, OrderStatus.COD_CONFIRMED)
        if payment.status == PaymentStatus.INITIATED.value:
            payment.status = PaymentStatus.PENDING.value
            payment.updated_at = utcnow()
        self.repo.commit()

        logger.info(f"COD order {order.id} confirmed")

    def _consignee(self, order: OrderModel) -> Consignee:
        address = self.users.get_default_address(order.user_id) or self.users.get_latest_active_address(
            order.user_id
        )
        if address is None:
            raise AddressMissing()

        user = self.users.get_user(order.user_id)
        street = ", ".join(p for p in (address.address_line1, address.address_line2) if p)
        return Consignee(
            name=address.full_name or (user.name if user else "") or "",
            phone=address.phone_number or (user.phone_number if user else "") or "",
            address=street,
            pin=address.postal_code or "",
            country=address.country or "",
            city=address.city,
            state=address.state,
        )

    @staticmethod
    def _result(order: OrderModel, payment_id: int, tracking_id: str | None, shipment_pending: bool = False):
        return {
            "order_id": order.id,
            "payment_id": payment_id,
            "status": order.status,
            "tracking_id": tracking_id,
            "shipment_pending": shipment_pending,
        }
