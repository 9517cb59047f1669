# storefront/tasks/cleanup.py
from datetime import timedelta

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.cart_repo import CartRepo
from storefront.repos.otp_repo import OtpRepo
from storefront.utils.settings import SESSION_TTL_SECONDS
from storefront.utils.timeutils import utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.cleanup.purge_expired_otps_task")
def purge_expired_otps_task():
    logger.info("Purge expired OTPs task started")

    db = SessionLocal()
    try:
        deleted = OtpRepo(db).delete_expired(utcnow())
        db.commit()
        logger.info(f"Deleted {deleted} expired OTPs")
        return deleted
    finally:
        db.close()


@celery_app.task(name="storefront.tasks.cleanup.purge_stale_session_carts_task")
def purge_stale_session_carts_task():
    """Koszyki gosci starsze niz TTL sesji - sesja i tak jest juz niewazna."""
    logger.info("Purge stale session carts task started")

    db = SessionLocal()
    try:
        cutoff = utcnow() - timedelta(seconds=SESSION_TTL_SECONDS)
        deleted = CartRepo(db).delete_stale_session_carts(cutoff)
        db.commit()
        logger.info(f"Deleted {deleted} stale session carts")
        return deleted
    finally:
        db.close()
