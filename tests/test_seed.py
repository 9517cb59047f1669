from storefront.data.database import SessionLocal
from storefront.data.models import ProductModel
from storefront.data.seed import CATALOG, seed
from storefront.domain.pricing import resolve_price


def test_seed_is_idempotent(db):
    assert seed(SessionLocal) == len(CATALOG)
    assert seed(SessionLocal) == 0
    assert db.query(ProductModel).count() == len(CATALOG)


def test_seeded_products_are_priceable(db):
    seed(SessionLocal)

    for product in db.query(ProductModel).all():
        for variant in product.sizes:
            assert resolve_price(product, variant) > 0
