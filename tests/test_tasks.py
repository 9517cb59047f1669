from datetime import timedelta

from storefront.data.models import ApiLogModel, AppErrorModel, CartModel, OtpModel
from storefront.services.notification_service import (
    NotificationService,
    build_shipment_failure_mail,
    deliver_otp_task,
    send_operator_mail_task,
)
from storefront.tasks.audit import record_api_request_task, record_app_error_task
from storefront.tasks.cleanup import purge_expired_otps_task, purge_stale_session_carts_task
from storefront.utils.timeutils import utcnow


def test_purge_expired_otps(db, user):
    now = utcnow()
    db.add_all([
        OtpModel(user_id=user.id, otp="111111", created_at=now - timedelta(minutes=10), expires_at=now - timedelta(minutes=5)),
        OtpModel(user_id=user.id, otp="222222", created_at=now, expires_at=now + timedelta(minutes=5)),
    ])
    db.commit()

    assert purge_expired_otps_task.delay().get() == 1
    assert [o.otp for o in db.query(OtpModel).all()] == ["222222"]


def test_purge_stale_session_carts_keeps_user_carts(db, user):
    old = utcnow() - timedelta(days=2)
    db.add_all([
        CartModel(session_id="stale", created_at=old),
        CartModel(session_id="fresh"),
        CartModel(user_id=user.id, created_at=old),
    ])
    db.commit()

    assert purge_stale_session_carts_task.delay().get() == 1
    db.expire_all()
    remaining = {(c.session_id, c.user_id) for c in db.query(CartModel).all()}
    assert remaining == {("fresh", None), (None, user.id)}


def test_api_request_is_recorded(db):
    record_api_request_task.delay("/carts", "GET", 200, 12.345, "127.0.0.1")

    row = db.query(ApiLogModel).one()
    assert (row.endpoint, row.method, row.status_code) == ("/carts", "GET", 200)


def test_app_errors_are_deduplicated(db):
    first = record_app_error_task.delay("boom", "Traceback...", "POST /orders/createOrder").get()
    second = record_app_error_task.delay("boom again", "Traceback...", "POST /orders/createOrder").get()

    assert first == second
    assert db.query(AppErrorModel).count() == 1


def test_operator_mail_is_logged_without_smtp():
    result = send_operator_mail_task.delay("subject", "body").get()
    assert result == {"subject": "subject", "status": "logged"}


def test_failure_mail_wording():
    subject, body = build_shipment_failure_mail(7, 3, 3, "timeout", is_final=True)
    assert subject == "Carrier shipment FAILED | Order 7 | Attempts exhausted"
    assert "Attempt: 3 / 3" in body

    subject, _ = build_shipment_failure_mail(7, 1, 3, "timeout", is_final=False)
    assert subject == "Carrier retry failed | Order 7 | Attempt 1"


def test_otp_delivery_does_not_echo_code():
    assert deliver_otp_task.delay(1, "9876543210", "123456").get() == {"user_id": 1, "status": "queued"}


def test_dispatch_failure_does_not_raise(monkeypatch):
    def broken(*args):
        raise ConnectionError("broker down")

    monkeypatch.setattr(send_operator_mail_task, "delay", broken)

    NotificationService().shipment_failed(1, 3, "timeout")
