# storefront/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models import OrderModel, PaymentRecordModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def list_orders_for_user(self, user_id: int) -> list[OrderModel]:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        ).scalars().all()

    def create_payment(self, payment: PaymentRecordModel) -> PaymentRecordModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_payment(self, order_id: int) -> PaymentRecordModel | None:
        return self.db.execute(
            select(PaymentRecordModel).where(PaymentRecordModel.order_id == order_id)
        ).scalar_one_or_none()

    def payments_by_order(self, order_ids) -> dict[int, PaymentRecordModel]:
        if not order_ids:
            return {}
        rows = self.db.execute(
            select(PaymentRecordModel).where(PaymentRecordModel.order_id.in_(order_ids))
        ).scalars().all()
        return {p.order_id: p for p in rows}

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
