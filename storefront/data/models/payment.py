from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from datetime import datetime, timezone

from storefront.data.database import Base


class PaymentRecordModel(Base):
    __tablename__ = "order_payment_history"

    id = Column(Integer, primary_key=True)
    # jeden rekord platnosci na zamowienie
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), unique=True, nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)
    method_used = Column(String, nullable=False)  # ONLINE, COD
    status = Column(String, nullable=False, default="initiated")  # initiated, success, failed, pending

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True)
