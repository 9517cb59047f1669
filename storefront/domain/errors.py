# storefront/domain/errors.py
"""
Bledy domenowe z zamknieta lista kodow.

Serwisy rzucaja AppError, routery (handler w storefront.api) zamieniaja je
na {"errorCode": ..., "message": ...}. Sukces to po prostu wartosc zwrocona.
"""
from enum import Enum


class ErrorCode(str, Enum):
    NO_ERROR = "NO_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    SESSION_REQUIRED = "SESSION_REQUIRED"
    WEIGHT_REQUIRED = "WEIGHT_REQUIRED"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    INVALID_WEIGHT = "INVALID_WEIGHT"
    INVALID_PRODUCT_PRICE = "INVALID_PRODUCT_PRICE"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    CART_ACCESS_DENIED = "CART_ACCESS_DENIED"
    CART_CONFLICT = "CART_CONFLICT"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    PAYMENT_NOT_FOUND = "PAYMENT_NOT_FOUND"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    ADDRESS_MISSING = "ADDRESS_MISSING"
    INVALID_OTP = "INVALID_OTP"
    OTP_EXPIRED = "OTP_EXPIRED"
    SERVER_ERROR = "SERVER_ERROR"


class AppError(Exception):
    code = ErrorCode.SERVER_ERROR
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# walidacja
class SessionRequired(AppError):
    code, status_code, message = ErrorCode.SESSION_REQUIRED, 400, "A user id or session token is required"


class VariantRequired(AppError):
    code, status_code, message = ErrorCode.WEIGHT_REQUIRED, 400, "Product variant is required"


class InvalidVariant(AppError):
    code, status_code, message = ErrorCode.INVALID_WEIGHT, 400, "Variant is not offered for this product"


class InvalidPrice(AppError):
    code, status_code, message = ErrorCode.INVALID_PRODUCT_PRICE, 400, "Product has no valid price for this variant"


class InvalidQuantity(AppError):
    code, status_code, message = ErrorCode.INVALID_QUANTITY, 400, "Quantity must be greater than 0"


# not found
class ProductNotFound(AppError):
    code, status_code, message = ErrorCode.PRODUCT_NOT_FOUND, 404, "Product not found"


class UserNotFound(AppError):
    code, status_code, message = ErrorCode.USER_NOT_FOUND, 404, "User does not exist"


class OrderNotFound(AppError):
    code, status_code, message = ErrorCode.ORDER_NOT_FOUND, 404, "Order not found"


class PaymentNotFound(AppError):
    code, status_code, message = ErrorCode.PAYMENT_NOT_FOUND, 404, "Payment record not found"


class AddressMissing(AppError):
    code, status_code, message = ErrorCode.ADDRESS_MISSING, 422, "No shipping address on file"


# dostep / bezpieczenstwo
class CartAccessDenied(AppError):
    code, status_code, message = ErrorCode.CART_ACCESS_DENIED, 403, "Cart belongs to another owner"


class InvalidSignature(AppError):
    code, status_code, message = ErrorCode.INVALID_SIGNATURE, 400, "Payment signature mismatch"


class InvalidOtp(AppError):
    code, status_code, message = ErrorCode.INVALID_OTP, 401, "OTP is invalid"


class OtpExpired(AppError):
    code, status_code, message = ErrorCode.OTP_EXPIRED, 401, "OTP has expired"


# wspolbieznosc
class CartConflict(AppError):
    code, status_code, message = ErrorCode.CART_CONFLICT, 409, "Cart was modified concurrently, try again"


class ServerError(AppError):
    pass
