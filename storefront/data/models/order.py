from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON
from datetime import datetime, timezone

from storefront.data.database import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String, nullable=False, default="pending")  # pending, paid, cod_confirmed, shipped
    total_amount = Column(Numeric(10, 2), nullable=False)
    product_ids = Column(JSON, nullable=False, default=list)
    product_count = Column(Integer, nullable=False, default=0)

    payment_intent_id = Column(String, nullable=True, index=True)
    payment_ref = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
