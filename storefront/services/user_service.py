# storefront/services/user_service.py
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models import UserModel
from storefront.domain.errors import UserNotFound
from storefront.repos.user_repo import UserRepo
from storefront.services.otp_service import OtpService
from storefront.services.session_service import SessionService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session, sessions: SessionService, otps: OtpService):
        self.repo = UserRepo(db)
        self.db = db
        self.sessions = sessions
        self.otps = otps

    def login_with_session(self, session_token: str) -> Dict[str, Any]:
        """
        User powiazany z sesja (tworzony jesli trzeba), koszyk sesji
        przechodzi na niego. Zwraca profil + domyslny adres.
        """
        user = self.repo.get_user_by_session(session_token)
        if not user:
            try:
                user = self.repo.create_user(UserModel(session_id=session_token))
                self.db.commit()
                logger.info(f"Created user {user.id} for guest session")
            except IntegrityError:
                # rownolegly login z tym samym tokenem
                self.db.rollback()
                user = self.repo.get_user_by_session(session_token)
                if not user:
                    raise

        self.sessions.attach_to_user(session_token, user.id)
        return self.identity(user)

    def otp_login(self, code: str, session_token: str | None = None) -> Dict[str, Any]:
        user_id = self.otps.verify(code)
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound()

        if session_token:
            self.sessions.attach_to_user(session_token, user.id)
        return self.identity(user)

    def identity(self, user: UserModel) -> Dict[str, Any]:
        first_name, _, last_name = (user.name or "").partition(" ")
        address = self.repo.get_default_address(user.id)

        return {
            "user_id": user.id,
            "user": {
                "first_name": first_name,
                "last_name": last_name,
                "email": user.email or "",
            },
            "address": {
                "address": address.address_line1 or "",
                "locality": address.address_line2 or "",
                "pincode": address.postal_code or "",
                "city": address.city or "",
                "state": address.state or "",
                "country": address.country or "",
            } if address else None,
        }
