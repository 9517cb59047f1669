from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models import UserModel, AddressModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_user_by_session(self, session_id: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.session_id == session_id)
        ).scalar_one_or_none()

    def create_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.flush()
        return user

    def get_default_address(self, user_id: int) -> AddressModel | None:
        return self.db.execute(
            select(AddressModel)
            .where(
                AddressModel.user_id == user_id,
                AddressModel.is_default.is_(True),
                AddressModel.is_active.is_(True),
            )
            .order_by(AddressModel.created_at.desc(), AddressModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def get_latest_active_address(self, user_id: int) -> AddressModel | None:
        return self.db.execute(
            select(AddressModel)
            .where(AddressModel.user_id == user_id, AddressModel.is_active.is_(True))
            .order_by(AddressModel.created_at.desc(), AddressModel.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def add_address(self, address: AddressModel) -> AddressModel:
        self.db.add(address)
        self.db.flush()
        return address
