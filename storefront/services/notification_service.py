# storefront/services/notification_service.py
import smtplib
from email.message import EmailMessage

from storefront.celery_worker import celery_app
from storefront.utils.settings import (
    SMTP_HOST,
    SMTP_PORT,
    SMTP_USER,
    SMTP_PASSWORD,
    SMTP_STARTTLS,
    ALERT_MAIL_FROM,
    ALERT_MAIL_TO,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def build_shipment_failure_mail(order_id, attempt: int, max_attempts: int, error: str, is_final: bool):
    if is_final:
        subject = f"Carrier shipment FAILED | Order {order_id} | Attempts exhausted"
    else:
        subject = f"Carrier retry failed | Order {order_id} | Attempt {attempt}"

    body = "\n".join([
        "Shipment creation failed." if is_final else "Shipment attempt failed, retrying.",
        f"Order: {order_id}",
        f"Attempt: {attempt} / {max_attempts}",
        f"Error: {error}",
        "Payment is confirmed; the order stays unshipped until a shipment is created."
        if is_final else "",
    ]).strip()
    return subject, body


def build_shipment_success_mail(order_id, attempts_used: int):
    subject = f"Carrier shipment created | Order {order_id}"
    body = f"Shipment created for order {order_id}.\nAttempts used: {attempts_used}"
    return subject, body


def _mask(phone: str | None) -> str:
    if not phone:
        return "<no phone>"
    return "*" * max(len(phone) - 4, 0) + phone[-4:]


class NotificationService:
    """
    Powiadomienia fire-and-forget przez Celery.
    Blad brokera jest logowany i nie przerywa glownej operacji.
    """

    def _dispatch(self, task, *args):
        try:
            task.delay(*args)
        except Exception as e:
            logger.warning(f"Could not dispatch {task.name}: {e}")

    def send_otp(self, user_id: int, phone: str | None, code: str):
        self._dispatch(deliver_otp_task, user_id, phone, code)

    def shipment_attempt_failed(self, order_id: int, attempt: int, max_attempts: int, error: str):
        subject, body = build_shipment_failure_mail(order_id, attempt, max_attempts, error, is_final=False)
        self._dispatch(send_operator_mail_task, subject, body)

    def shipment_failed(self, order_id: int, attempts: int, error: str):
        subject, body = build_shipment_failure_mail(order_id, attempts, attempts, error, is_final=True)
        self._dispatch(send_operator_mail_task, subject, body)

    def shipment_created(self, order_id: int, attempts_used: int):
        subject, body = build_shipment_success_mail(order_id, attempts_used)
        self._dispatch(send_operator_mail_task, subject, body)


@celery_app.task(
    name="storefront.services.notification_service.send_operator_mail_task",
    autoretry_for=(smtplib.SMTPException, OSError),
    retry_backoff=True,
    max_retries=3,
)
def send_operator_mail_task(subject: str, body: str):
    """
    Mail do operatora. Bez SMTP_HOST (dev, testy) tylko logujemy.
    """
    if not SMTP_HOST:
        logger.warning(f"[ALERT] {subject} :: {body}")
        return {"subject": subject, "status": "logged"}

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = ALERT_MAIL_FROM
    msg["To"] = ALERT_MAIL_TO
    msg.set_content(body)

    with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=10) as smtp:
        if SMTP_STARTTLS:
            smtp.starttls()
        if SMTP_USER:
            smtp.login(SMTP_USER, SMTP_PASSWORD)
        smtp.send_message(msg)

    logger.info(f"[ALERT] sent: {subject}")
    return {"subject": subject, "status": "sent"}


@celery_app.task(name="storefront.services.notification_service.deliver_otp_task")
def deliver_otp_task(user_id: int, phone: str | None, code: str):
    """
    Punkt wpiecia bramki SMS. Kod nie trafia do logow.
    """
    logger.info(f"[NOTIFICATION] OTP for user {user_id} queued for {_mask(phone)}")
    return {"user_id": user_id, "status": "queued"}
