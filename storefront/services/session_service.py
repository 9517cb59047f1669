# storefront/services/session_service.py
import uuid
from datetime import timedelta
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models import CartModel
from storefront.domain.errors import CartConflict
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import merge_items, recompute_totals
from storefront.utils.retry import conflict_retry
from storefront.utils.settings import SESSION_TTL_SECONDS
from storefront.utils.timeutils import utcnow, as_utc
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class SessionService:
    """
    Sesja goscia = nieprzewidywalny token + pusty koszyk pod nim.
    Waznosc liczona od utworzenia koszyka (bez przedluzania przy kazdym uzyciu).
    """

    def __init__(self, db: Session, ttl_seconds: int | None = None):
        self.repo = CartRepo(db)
        self.ttl = timedelta(seconds=ttl_seconds or SESSION_TTL_SECONDS)

    def ensure_session(self, incoming_token: str | None) -> str:
        if incoming_token:
            cart = self.repo.get_cart_by_session(incoming_token)
            if cart is not None and not self._expired(cart):
                return incoming_token
            logger.info("Incoming session unknown or expired, minting a new one")

        token = str(uuid.uuid4())
        self.repo.add_cart(
            CartModel(
                session_id=token,
                version=1,
                product_count=0,
                total_price=Decimal("0.00"),
            )
        )
        self.repo.commit()
        logger.info("New guest session created")
        return token

    def _expired(self, cart: CartModel) -> bool:
        return utcnow() - as_utc(cart.created_at) > self.ttl

    @conflict_retry(CartConflict)
    def attach_to_user(self, session_token: str, user_id: int) -> None:
        """
        Koszyk sesji przechodzi na usera. Jesli user ma juz koszyk - scalamy
        linie (suma ilosci dla tej samej linii) i kasujemy koszyk sesji.
        """
        session_cart = self.repo.get_cart_by_session(session_token)
        if session_cart is None:
            return

        try:
            user_cart = self.repo.get_cart_by_user(user_id)

            if user_cart is None:
                rowcount = self.repo.update_cart_version(
                    cart_id=session_cart.id,
                    old_version=session_cart.version,
                    new_data={
                        "user_id": user_id,
                        "session_id": None,
                        "version": session_cart.version + 1,
                        "updated_at": utcnow(),
                    },
                )
                if rowcount == 0:
                    raise CartConflict()
                logger.info(f"Session cart {session_cart.id} promoted to user {user_id}")

            elif user_cart.id != session_cart.id:
                user_version = user_cart.version
                session_version = session_cart.version

                merge_items(user_cart, session_cart.items)
                count, total = recompute_totals(user_cart.items)

                rowcount = self.repo.update_cart_version(
                    cart_id=user_cart.id,
                    old_version=user_version,
                    new_data={
                        "version": user_version + 1,
                        "product_count": count,
                        "total_price": total,
                        "updated_at": utcnow(),
                    },
                )
                if rowcount == 0:
                    raise CartConflict()
                if self.repo.delete_cart(session_cart, session_version) == 0:
                    raise CartConflict()
                logger.info(f"Session cart merged into cart {user_cart.id} of user {user_id}")

            self.repo.commit()

        except IntegrityError as e:
            logger.warning(f"Cart promotion conflict for user {user_id}: {e.orig}")
            self.repo.rollback()
            raise CartConflict() from e
        except CartConflict:
            self.repo.rollback()
            raise
