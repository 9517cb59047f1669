#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from storefront.data.models.user import UserModel
from storefront.data.models.address import AddressModel
from storefront.data.models.product import ProductModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.payment import PaymentRecordModel
from storefront.data.models.shipment import ShipmentModel
from storefront.data.models.otp import OtpModel
from storefront.data.models.coupon import CouponModel
from storefront.data.models.audit import ApiLogModel, AppErrorModel

__all__ = [
    "UserModel",
    "AddressModel",
    "ProductModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "PaymentRecordModel",
    "ShipmentModel",
    "OtpModel",
    "CouponModel",
    "ApiLogModel",
    "AppErrorModel",
]
