from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, JSON, Text

from storefront.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    product_type = Column(String, nullable=True)
    # stan magazynu tylko informacyjnie, bez rezerwacji
    stock = Column(Integer, nullable=False, default=0)
    priority = Column(Integer, nullable=False, default=0)

    sizes = Column(JSON, nullable=False, default=list)              # ["small", "large"]
    size_prices = Column(JSON, nullable=False, default=dict)        # {"small": 100, "large": 200}
    discounted_prices = Column(JSON, nullable=False, default=dict)  # {"small": 80}
    image_urls = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
