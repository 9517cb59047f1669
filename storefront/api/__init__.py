# storefront/api/__init__.py
import time
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.api.routers import carts, health, orders, users
from storefront.domain.errors import AppError, ErrorCode
from storefront.tasks.audit import record_api_request_task, record_app_error_task
from storefront.utils.settings import API_LOG_ENABLED
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _error(code: ErrorCode, message: str | None, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"errorCode": code.value, "message": message})


def _register_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.info(f"{request.method} {request.url.path} -> {exc.code.value}: {exc.message}")
        return _error(exc.code, exc.message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
        return _error(ErrorCode.INVALID_REQUEST, message, 400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        # stack trace tylko w logach / app_errors, nigdy do klienta
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        try:
            record_app_error_task.delay(str(exc), stack, f"{request.method} {request.url.path}")
        except Exception as e:
            logger.warning(f"Could not dispatch app error record: {e}")
        return _error(ErrorCode.SERVER_ERROR, "Internal server error", 500)


def _register_api_log(app: FastAPI):
    @app.middleware("http")
    async def api_log(request: Request, call_next):
        started = time.perf_counter()
        # nieobsluzony wyjatek leci dalej do handlera, w logu zostaje jako 500
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            try:
                record_api_request_task.delay(
                    request.url.path,
                    request.method,
                    status_code,
                    elapsed_ms,
                    request.client.host if request.client else None,
                )
            except Exception as e:
                logger.warning(f"Could not dispatch api log for {request.url.path}: {e}")


def create_app(api_log: bool = API_LOG_ENABLED) -> FastAPI:
    app = FastAPI(
        title="Storefront Service",
        version="1.0.0",
    )

    _register_handlers(app)
    if api_log:
        _register_api_log(app)

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(users.router)

    return app
