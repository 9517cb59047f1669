# storefront/api/deps.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.services.carrier_client import DelhiveryClient
from storefront.services.cart_service import CartService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.otp_service import OtpService
from storefront.services.payment_gateway import RazorpayGateway
from storefront.services.payment_service import PaymentService
from storefront.services.session_service import SessionService
from storefront.services.shipment_service import ShipmentCoordinator
from storefront.services.user_service import UserService
from storefront.utils.settings import SESSION_COOKIE_NAME

SESSION_HEADER = "X-Session-Id"


# klienci zewnetrzni - w testach podmieniane przez app.dependency_overrides
def get_lock_service() -> LockService:
    return LockService()


def get_gateway() -> RazorpayGateway:
    return RazorpayGateway()


def get_carrier() -> DelhiveryClient:
    return DelhiveryClient()


def get_notifier() -> NotificationService:
    return NotificationService()


def session_token_from(request: Request, explicit: str | None = None) -> str | None:
    """body > cookie > naglowek"""
    return explicit or request.cookies.get(SESSION_COOKIE_NAME) or request.headers.get(SESSION_HEADER)


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


def get_session_service(db: Session = Depends(get_db)) -> SessionService:
    return SessionService(db)


def get_otp_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
) -> OtpService:
    return OtpService(db, notifier)


def get_user_service(
    db: Session = Depends(get_db),
    sessions: SessionService = Depends(get_session_service),
    otps: OtpService = Depends(get_otp_service),
) -> UserService:
    return UserService(db, sessions, otps)


def get_order_service(
    db: Session = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
) -> OrderService:
    return OrderService(db, gateway)


def get_shipment_coordinator(
    db: Session = Depends(get_db),
    carrier: DelhiveryClient = Depends(get_carrier),
    notifier: NotificationService = Depends(get_notifier),
    locks: LockService = Depends(get_lock_service),
) -> ShipmentCoordinator:
    return ShipmentCoordinator(db, carrier, notifier, locks)


def get_payment_service(
    db: Session = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
    shipments: ShipmentCoordinator = Depends(get_shipment_coordinator),
) -> PaymentService:
    return PaymentService(db, gateway, shipments)
