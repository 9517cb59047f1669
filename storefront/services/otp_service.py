# storefront/services/otp_service.py
import secrets
from datetime import timedelta

from sqlalchemy.orm import Session

from storefront.data.models import OtpModel
from storefront.domain.errors import InvalidOtp, OtpExpired, UserNotFound
from storefront.repos.otp_repo import OtpRepo
from storefront.repos.user_repo import UserRepo
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import OTP_LENGTH, OTP_TTL_SECONDS
from storefront.utils.timeutils import utcnow, as_utc
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def generate_otp(length: int = 6) -> str:
    if length <= 0:
        raise ValueError("OTP length must be greater than 0")
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


class OtpService:
    """
    ISSUED -> CONSUMED (delete przy weryfikacji) albo ISSUED -> EXPIRED (po czasie).
    Starsze kody tego samego usera zostaja wazne do wygasniecia.
    """

    def __init__(self, db: Session, notifier: NotificationService, ttl_seconds: int | None = None):
        self.repo = OtpRepo(db)
        self.users = UserRepo(db)
        self.notifier = notifier
        self.ttl = timedelta(seconds=ttl_seconds or OTP_TTL_SECONDS)

    def issue(self, user_id: int) -> OtpModel:
        """Zapisuje nowy kod dla usera i przekazuje go do powiadomien. Kod jest w `.otp`."""
        user = self.users.get_user(user_id)
        if not user:
            raise UserNotFound()

        now = utcnow()
        record = self.repo.create_otp(
            OtpModel(
                user_id=user.id,
                otp=generate_otp(OTP_LENGTH),
                created_at=now,
                expires_at=now + self.ttl,
            )
        )
        self.repo.commit()

        logger.info(f"OTP {record.id} issued for user {user.id}, expires {record.expires_at}")
        self.notifier.send_otp(user.id, user.phone_number, record.otp)
        return record

    def verify(self, code: str) -> int:
        record = self.repo.latest_by_code(code)
        if record is None:
            raise InvalidOtp()

        if utcnow() > as_utc(record.expires_at):
            logger.info(f"OTP {record.id} expired")
            raise OtpExpired()

        otp_id, user_id = record.id, record.user_id
        if self.repo.consume(otp_id) == 0:
            self.repo.rollback()
            raise InvalidOtp()
        self.repo.commit()

        logger.info(f"OTP {otp_id} consumed by user {user_id}")
        return user_id
