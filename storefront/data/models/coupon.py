from sqlalchemy import Column, Integer, String, Date, Numeric, Boolean

from storefront.data.database import Base


class CouponModel(Base):
    __tablename__ = "discount_coupons"

    id = Column(Integer, primary_key=True)
    coupon_code = Column(String, unique=True, nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=True)
    valid_from = Column(Date, nullable=True)
    valid_to = Column(Date, nullable=True)
    product_id = Column(Integer, nullable=True)
    product_type = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
