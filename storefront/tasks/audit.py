# storefront/tasks/audit.py
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.data.models import ApiLogModel, AppErrorModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(
    name="storefront.tasks.audit.record_api_request_task",
    autoretry_for=(SQLAlchemyError,),
    retry_backoff=True,
    max_retries=3,
)
def record_api_request_task(endpoint: str, method: str, status_code: int, response_time: float, ip_address: str | None):
    db = SessionLocal()
    try:
        db.add(
            ApiLogModel(
                endpoint=endpoint,
                method=method,
                status_code=status_code,
                response_time=round(response_time, 2),
                ip_address=ip_address,
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()


@celery_app.task(
    name="storefront.tasks.audit.record_app_error_task",
    autoretry_for=(SQLAlchemyError,),
    retry_backoff=True,
    max_retries=3,
)
def record_app_error_task(error_message: str, stack_trace: str, method_name: str, level: str = "fatal"):
    """Ten sam blad z tego samego miejsca zapisujemy tylko raz."""
    db = SessionLocal()
    try:
        duplicate = db.execute(
            select(AppErrorModel.id)
            .where(AppErrorModel.stack_trace == stack_trace, AppErrorModel.method_name == method_name)
            .limit(1)
        ).scalar_one_or_none()
        if duplicate is not None:
            logger.info(f"Error in {method_name} already recorded as {duplicate}")
            return duplicate

        row = AppErrorModel(
            error_message=error_message,
            stack_trace=stack_trace,
            method_name=method_name,
            level=level,
        )
        db.add(row)
        db.commit()
        return row.id
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()
