# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAZNE: explicite importuj taski, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "storefront.tasks.cleanup",
    "storefront.tasks.audit",
    "storefront.services.notification_service",
)

# testy / lokalnie bez brokera
celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER

celery_app.conf.beat_schedule = {
    "purge-expired-otps": {
        "task": "storefront.tasks.cleanup.purge_expired_otps_task",
        "schedule": 15 * 60.0,
    },
    "purge-stale-session-carts": {
        "task": "storefront.tasks.cleanup.purge_stale_session_carts_task",
        "schedule": 15 * 60.0,
    },
}

celery_app.conf.timezone = "UTC"
