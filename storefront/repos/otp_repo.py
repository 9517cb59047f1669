from datetime import datetime

from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from storefront.data.models import OtpModel


class OtpRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_otp(self, otp: OtpModel) -> OtpModel:
        self.db.add(otp)
        self.db.flush()
        return otp

    def latest_by_code(self, code: str) -> OtpModel | None:
        return self.db.execute(
            select(OtpModel)
            .where(OtpModel.otp == code)
            .order_by(OtpModel.created_at.desc(), OtpModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def consume(self, otp_id: int) -> int:
        # delete zwraca 0 gdy ktos zuzyl kod przed nami
        result = self.db.execute(delete(OtpModel).where(OtpModel.id == otp_id))
        return result.rowcount

    def delete_expired(self, now: datetime) -> int:
        result = self.db.execute(delete(OtpModel).where(OtpModel.expires_at < now))
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
