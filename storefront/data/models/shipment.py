from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON
from datetime import datetime, timezone

from storefront.data.database import Base


class ShipmentModel(Base):
    __tablename__ = "shipping_details"

    id = Column(Integer, primary_key=True)
    # unique = druga przesylka dla tego samego zamowienia nie przejdzie
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), unique=True, nullable=False)

    waybill = Column(String, nullable=False, index=True)
    carrier_order_ref = Column(String, nullable=True)

    # snapshot odbiorcy, nie referencja do adresu
    consignee_name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    address = Column(String, nullable=False)
    pin = Column(String, nullable=False)
    country = Column(String, nullable=False)

    payment_mode = Column(String, nullable=False)  # Prepaid, COD
    total_amount = Column(Numeric(10, 2), nullable=False)
    cod_amount = Column(Numeric(10, 2), nullable=False, default=0)

    current_status = Column(String, nullable=True)
    current_location = Column(String, nullable=True)
    expected_delivery = Column(String, nullable=True)
    carrier_response = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=True)
