# storefront/data/seed.py
from storefront.data.database import SessionLocal
from storefront.data.models import ProductModel, CouponModel
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

CATALOG = [
    {
        "name": "Himalayan Pink Salt",
        "product_type": "spices",
        "stock": 120,
        "priority": 1,
        "sizes": ["small", "large"],
        "size_prices": {"small": 100, "large": 200},
        "discounted_prices": {"small": 80},
        "image_urls": ["https://cdn.example.com/salt.jpg"],
    },
    {
        "name": "Cold Pressed Mustard Oil",
        "product_type": "oils",
        "stock": 40,
        "priority": 2,
        "sizes": ["500ml", "1l"],
        "size_prices": {"500ml": 150, "1l": 280},
        "discounted_prices": {},
        "image_urls": ["https://cdn.example.com/mustard-oil.jpg"],
    },
    {
        "name": "Organic Turmeric",
        "product_type": "spices",
        "stock": 75,
        "priority": 3,
        "sizes": ["100g", "250g"],
        "size_prices": {"100g": 90, "250g": 210},
        "discounted_prices": {"250g": 190},
        "image_urls": [],
    },
]

COUPONS = [
    {"coupon_code": "WELCOME10", "discount_percent": 10},
]


def seed(session_factory=SessionLocal) -> int:
    """Wrzuca przykladowy katalog, tylko gdy tabela produktow jest pusta."""
    db = session_factory()
    try:
        if db.query(ProductModel).first():
            logger.info("Catalog already seeded, skipping")
            return 0

        db.add_all(ProductModel(**p) for p in CATALOG)
        db.add_all(CouponModel(**c) for c in COUPONS)
        db.commit()
        logger.info(f"Seeded {len(CATALOG)} products and {len(COUPONS)} coupons")
        return len(CATALOG)
    finally:
        db.close()


if __name__ == "__main__":
    seed()
