# storefront/repos/cart_repo.py
from datetime import datetime

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from storefront.data.models import CartModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def get_cart_by_session(self, session_id: str) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.session_id == session_id)
        ).scalar_one_or_none()

    def add_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        """
        UPDATE carts SET ... WHERE id = :id AND version = :old_version
        0 wierszy = ktos inny zapisal koszyk w miedzyczasie.
        """
        self.db.flush()
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
        )
        return result.rowcount

    def delete_cart(self, cart: CartModel, old_version: int) -> int:
        # linie przez delete-orphan, sam koszyk warunkowo po wersji
        cart.items.clear()
        self.db.flush()
        result = self.db.execute(
            delete(CartModel).where(CartModel.id == cart.id, CartModel.version == old_version)
        )
        return result.rowcount

    def delete_stale_session_carts(self, created_before: datetime) -> int:
        carts = self.db.execute(
            select(CartModel).where(
                CartModel.user_id.is_(None),
                CartModel.created_at < created_before,
            )
        ).scalars().all()
        for cart in carts:
            self.db.delete(cart)
        return len(carts)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
