from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models import CouponModel


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_coupon(self, coupon_id: int) -> CouponModel | None:
        return self.db.get(CouponModel, coupon_id)

    def get_coupon_by_code(self, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(CouponModel.coupon_code == code)
        ).scalar_one_or_none()
