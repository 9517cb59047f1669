from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models import ShipmentModel


class ShipmentRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_order(self, order_id: int) -> ShipmentModel | None:
        return self.db.execute(
            select(ShipmentModel).where(ShipmentModel.order_id == order_id)
        ).scalar_one_or_none()

    def shipments_by_order(self, order_ids) -> dict[int, ShipmentModel]:
        if not order_ids:
            return {}
        rows = self.db.execute(
            select(ShipmentModel).where(ShipmentModel.order_id.in_(order_ids))
        ).scalars().all()
        return {s.order_id: s for s in rows}

    def create_shipment(self, shipment: ShipmentModel) -> ShipmentModel:
        self.db.add(shipment)
        self.db.flush()
        return shipment

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
