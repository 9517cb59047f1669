# storefront/services/shipment_service.py
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Any, List

import requests
from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, stop_after_delay, wait_exponential

from storefront.data.models import OrderModel, ShipmentModel
from storefront.domain.errors import OrderNotFound
from storefront.domain.order_status import OrderStatus, PaymentMethod, PaymentStatus, advance
from storefront.domain.shipping import Consignee, Parcel, build_shipment_payload, normalize_phone, order_reference
from storefront.repos.order_repo import OrderRepo
from storefront.repos.shipment_repo import ShipmentRepo
from storefront.services.carrier_client import CarrierError, DelhiveryClient
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import (
    CARRIER_PICKUP_LOCATION,
    CARRIER_SELLER_NAME,
    SHIPMENT_BACKOFF_SECONDS,
    SHIPMENT_LOCK_TTL_SECONDS,
    SHIPMENT_MAX_ATTEMPTS,
    SHIPMENT_RETRY_MAX_SECONDS,
    TRACKING_WORKERS,
)
from storefront.utils.timeutils import utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

TRANSIENT_CARRIER_ERRORS = (requests.RequestException, CarrierError)


class ShipmentFailed(Exception):
    def __init__(self, order_id: int, attempts: int, reason: str):
        self.order_id = order_id
        self.attempts = attempts
        self.reason = reason
        super().__init__(f"Shipment for order {order_id} failed after {attempts} attempts: {reason}")


class ShipmentInProgress(Exception):
    """Inny worker trzyma lock na tworzenie przesylki dla tego zamowienia."""


class ShipmentCoordinator:
    """
    -max jedna przesylka na zamowienie (unique + lock w redis)
    -retry z rosnacym backoffem, kazda porazka raportowana, po ostatniej mail do operatora
    -sledzenie przesylek rownolegle, blad jednej nie blokuje reszty
    """

    def __init__(
        self,
        db: Session,
        carrier: DelhiveryClient,
        notifier: NotificationService,
        lock_service: LockService,
        max_attempts: int = SHIPMENT_MAX_ATTEMPTS,
        backoff_seconds: float = SHIPMENT_BACKOFF_SECONDS,
        max_retry_seconds: float = SHIPMENT_RETRY_MAX_SECONDS,
        tracking_workers: int = TRACKING_WORKERS,
    ):
        self.repo = ShipmentRepo(db)
        self.orders = OrderRepo(db)
        self.carrier = carrier
        self.notifier = notifier
        self.locks = lock_service
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.max_retry_seconds = max_retry_seconds
        self.tracking_workers = tracking_workers

    def existing(self, order_id: int) -> ShipmentModel | None:
        return self.repo.get_by_order(order_id)

    def create(self, order: OrderModel, consignee: Consignee, parcel: Parcel | None = None) -> ShipmentModel:
        """
        Tworzy przesylke u przewoznika i zapisuje ja razem z przejsciem
        zamowienia na shipped. Istniejaca przesylka jest zwracana bez
        wolania przewoznika.
        """
        existing = self.repo.get_by_order(order.id)
        if existing:
            logger.info(f"Shipment for order {order.id} already exists ({existing.waybill})")
            return existing

        owner = uuid.uuid4().hex
        if not self.locks.acquire_shipment_lock(order.id, owner, SHIPMENT_LOCK_TTL_SECONDS):
            raise ShipmentInProgress(f"Shipment for order {order.id} is being created elsewhere")

        try:
            # ponowny check juz pod lockiem
            existing = self.repo.get_by_order(order.id)
            if existing:
                return existing

            payment = self.orders.get_payment(order.id)
            cod = payment is not None and payment.method_used == PaymentMethod.COD.value
            payment_mode = "COD" if cod else "Prepaid"

            payload = build_shipment_payload(
                consignee,
                order_ref=order_reference(order.id),
                payment_mode=payment_mode,
                total_amount=order.total_amount,
                pickup_location=CARRIER_PICKUP_LOCATION,
                seller_name=CARRIER_SELLER_NAME,
                parcel=parcel,
            )

            created, attempts = self._send_with_retry(order.id, payload)

            shipment = ShipmentModel(
                order_id=order.id,
                waybill=created["waybill"],
                carrier_order_ref=created["order_ref"],
                consignee_name=consignee.name,
                phone=normalize_phone(consignee.phone),
                address=consignee.address,
                pin=consignee.pin,
                country=consignee.country,
                payment_mode=payment_mode,
                total_amount=order.total_amount,
                cod_amount=order.total_amount if cod else 0,
                current_status=created["status"],
                current_location=created["sort_code"],
                carrier_response=created["raw"],
            )

            try:
                self.repo.create_shipment(shipment)
                advance(order, OrderStatus.SHIPPED)
                self.repo.commit()
            except IntegrityError:
                self.repo.rollback()
                existing = self.repo.get_by_order(order.id)
                if existing is None:
                    raise
                logger.warning(
                    f"Duplicate shipment for order {order.id}: carrier waybill {created['waybill']} "
                    f"discarded, keeping {existing.waybill}"
                )
                return existing

            logger.info(f"Shipment {shipment.waybill} created for order {order.id} after {attempts} attempt(s)")
            if attempts > 1:
                self.notifier.shipment_created(order.id, attempts)
            return shipment

        finally:
            try:
                self.locks.release_shipment_lock(order.id, owner)
            except RedisError as e:
                logger.warning(f"Could not release shipment lock for order {order.id}, TTL will expire it: {e}")

    def _send_with_retry(self, order_id: int, payload: dict):
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts) | stop_after_delay(self.max_retry_seconds),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=self.max_retry_seconds),
            retry=retry_if_exception_type(TRANSIENT_CARRIER_ERRORS),
            before_sleep=lambda state: self._report_attempt(order_id, state),
        )

        attempts = 0
        try:
            for attempt in retrying:
                with attempt:
                    attempts += 1
                    created = self.carrier.create_shipment(payload)
        except TRANSIENT_CARRIER_ERRORS as e:
            logger.error(f"Shipment for order {order_id} failed after {attempts} attempt(s): {e}")
            self.notifier.shipment_failed(order_id, attempts, str(e))
            raise ShipmentFailed(order_id, attempts, str(e)) from e

        return created, attempts

    def _report_attempt(self, order_id: int, retry_state):
        error = retry_state.outcome.exception()
        logger.warning(
            f"Shipment attempt {retry_state.attempt_number}/{self.max_attempts} "
            f"for order {order_id} failed: {error}"
        )
        self.notifier.shipment_attempt_failed(order_id, retry_state.attempt_number, self.max_attempts, str(error))

    def track(self, waybill: str) -> dict:
        return self.carrier.track(waybill)

    def refresh_tracking(self, shipment: ShipmentModel) -> dict:
        """
        Live status przewoznika zapisany na przesylce. Przy bledzie zostaje
        ostatni znany status.
        """
        try:
            live = self.track(shipment.waybill)
        except TRANSIENT_CARRIER_ERRORS as e:
            logger.warning(f"Tracking {shipment.waybill} failed, using last known status: {e}")
            return self._last_known(shipment)

        self._reconcile(shipment, live)
        self._commit_reconciled()
        return self._last_known(shipment)

    def order_tracking(self, order_id: int) -> dict:
        """Status przesylki jednego zamowienia, puste pola gdy jeszcze nie nadane."""
        if self.orders.get_order(order_id) is None:
            raise OrderNotFound()

        shipment = self.repo.get_by_order(order_id)
        if shipment is None:
            return self._no_shipment()
        return self.refresh_tracking(shipment)

    def list_orders_with_tracking(self, user_id: int) -> List[Dict[str, Any]]:
        orders = self.orders.list_orders_for_user(user_id)
        if not orders:
            return []

        order_ids = [o.id for o in orders]
        payments = self.orders.payments_by_order(order_ids)
        shipments = self.repo.shipments_by_order(order_ids)

        live = self._track_many([s.waybill for s in shipments.values() if s.waybill])
        reconciled = False
        for shipment in shipments.values():
            if shipment.waybill in live:
                reconciled = self._reconcile(shipment, live[shipment.waybill]) or reconciled
        if reconciled:
            self._commit_reconciled()

        result = []
        for order in orders:
            payment = payments.get(order.id)
            shipment = shipments.get(order.id)
            result.append(
                {
                    "order_id": order.id,
                    "created_at": order.created_at,
                    "order_status": order.status,
                    "total_amount": order.total_amount,
                    "product_ids": order.product_ids or [],
                    "product_count": order.product_count or 0,
                    "payment": {
                        "method": payment.method_used if payment else None,
                        "status": payment.status if payment else None,
                        "amount": payment.amount if payment else None,
                        "paid_at": payment.updated_at
                        if payment and payment.status == PaymentStatus.SUCCESS.value else None,
                        "payment_ref": order.payment_ref,
                    },
                    "shipping": self._last_known(shipment) if shipment else self._no_shipment(),
                }
            )
        return result

    def _track_many(self, waybills: List[str]) -> Dict[str, dict]:
        results: Dict[str, dict] = {}
        if not waybills:
            return results

        # sesja DB nie jest thread-safe: watki tylko pytaja przewoznika
        with ThreadPoolExecutor(max_workers=min(self.tracking_workers, len(waybills))) as pool:
            futures = {pool.submit(self.track, w): w for w in waybills}
            for future in as_completed(futures):
                waybill = futures[future]
                try:
                    results[waybill] = future.result()
                except Exception as e:
                    logger.warning(f"Tracking lookup for {waybill} failed: {e}")
        return results

    @staticmethod
    def _reconcile(shipment: ShipmentModel, live: dict) -> bool:
        changed = False
        for field, key in (
            ("current_status", "status"),
            ("current_location", "location"),
            ("expected_delivery", "expected_delivery"),
        ):
            value = live.get(key)
            if value is not None and getattr(shipment, field) != value:
                setattr(shipment, field, value)
                changed = True
        if changed:
            shipment.updated_at = utcnow()
        return changed

    def _commit_reconciled(self):
        try:
            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.warning(f"Could not store reconciled tracking status: {e}")

    @staticmethod
    def _no_shipment() -> dict:
        return {"status": None, "tracking_number": None, "location": None, "expected_delivery": None}

    @staticmethod
    def _last_known(shipment: ShipmentModel) -> dict:
        return {
            "status": shipment.current_status,
            "tracking_number": shipment.waybill,
            "location": shipment.current_location,
            "expected_delivery": shipment.expected_delivery,
        }
