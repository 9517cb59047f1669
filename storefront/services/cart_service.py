# storefront/services/cart_service.py
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Any, Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models import CartModel, CartItemModel
from storefront.domain.errors import (
    CartAccessDenied,
    CartConflict,
    InvalidQuantity,
    ProductNotFound,
    SessionRequired,
    UserNotFound,
    VariantRequired,
)
from storefront.domain.pricing import resolve_price
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.repos.user_repo import UserRepo
from storefront.utils.retry import conflict_retry
from storefront.utils.timeutils import utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CartOwner:
    """
    Kto jest wlascicielem koszyka. Lookup po user_id jesli jest, inaczej po sesji.
    cart_id (opcjonalnie) musi nalezec do tego wlasciciela.
    """

    user_id: int | None = None
    session_id: str | None = None
    cart_id: int | None = None


def recompute_totals(items: Iterable[CartItemModel]) -> tuple[int, Decimal]:
    """Przelicza subtotal kazdej linii i zwraca (product_count, total_price)."""
    count = 0
    total = Decimal("0.00")
    for item in items:
        item.total_price = item.price * item.quantity
        count += item.quantity
        total += item.total_price
    return count, total


def find_line(cart: CartModel, product_id: int, variant: str) -> CartItemModel | None:
    return next(
        (i for i in cart.items if i.product_id == product_id and i.variant == variant),
        None,
    )


def merge_items(target: CartModel, source_items: Iterable[CartItemModel]):
    """Ta sama linia (produkt + wariant) sumuje ilosc, reszta jest dopisywana."""
    for src in source_items:
        line = find_line(target, src.product_id, src.variant)
        if line:
            line.quantity += src.quantity
        else:
            target.items.append(
                CartItemModel(
                    product_id=src.product_id,
                    variant=src.variant,
                    quantity=src.quantity,
                    price=src.price,
                    total_price=src.price * src.quantity,
                )
            )


def empty_cart(owner: CartOwner) -> Dict[str, Any]:
    return {
        "id": None,
        "created_at": None,
        "user_id": owner.user_id,
        "session_id": owner.session_id,
        "items": [],
        "product_count": 0,
        "total_price": Decimal("0.00"),
    }


class CartService:
    """
    commands (add, remove) modyfikuja koszyk z optimistic lockingiem na version,
    query (get) tylko odczyt + ewentualna synchronizacja zagregowanych pol
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.users = UserRepo(db)

    #query - odczyt
    def get_cart(self, owner: CartOwner) -> Dict[str, Any]:
        cart = self._load(owner)
        if cart is None:
            return empty_cart(owner)

        count, total = recompute_totals(cart.items)
        if count != cart.product_count or total != cart.total_price:
            logger.info(f"Cart {cart.id} aggregates out of sync, rewriting ({count}, {total})")
            rowcount = self.repo.update_cart_version(
                cart_id=cart.id,
                old_version=cart.version,
                new_data={
                    "version": cart.version + 1,
                    "product_count": count,
                    "total_price": total,
                    "updated_at": utcnow(),
                },
            )
            if rowcount == 0:
                # ktos wlasnie zapisal koszyk, jego zapis i tak przeliczyl sumy
                self.repo.rollback()
                cart = self._load(owner)
                if cart is None:
                    return empty_cart(owner)
            else:
                self.repo.commit()

        return self._present(cart)

    #commands
    def add_item(
        self,
        owner: CartOwner,
        product_id: int,
        variant: str | None,
        quantity: int = 1,
    ) -> Dict[str, Any]:
        if not variant:
            raise VariantRequired()
        if quantity is None or quantity <= 0:
            raise InvalidQuantity()
        self._require_owner(owner)

        if owner.user_id is not None and not self.users.get_user(owner.user_id):
            raise UserNotFound()

        product = self.products.get_product(product_id)
        if not product:
            raise ProductNotFound()

        price = resolve_price(product, variant)

        return self._add_line(owner, product_id, variant, quantity, price)

    @conflict_retry(CartConflict)
    def _add_line(
        self,
        owner: CartOwner,
        product_id: int,
        variant: str,
        quantity: int,
        price: Decimal,
    ) -> Dict[str, Any]:
        cart = self._load(owner)

        try:
            if cart is None:
                cart = CartModel(
                    user_id=owner.user_id,
                    session_id=owner.session_id if owner.user_id is None else None,
                    version=1,
                )
                cart.items.append(
                    CartItemModel(product_id=product_id, variant=variant, quantity=quantity, price=price)
                )
                cart.product_count, cart.total_price = recompute_totals(cart.items)
                self.repo.add_cart(cart)
                logger.info(f"Created cart {cart.id} with product {product_id}/{variant} x{quantity}")
            else:
                old_version = cart.version
                line = find_line(cart, product_id, variant)
                if line:
                    logger.info(
                        f"Product {product_id}/{variant} already in cart {cart.id}, "
                        f"quantity {line.quantity} -> {line.quantity + quantity}"
                    )
                    line.quantity += quantity
                    line.price = price  # zawsze aktualna cena z katalogu
                else:
                    logger.info(f"Adding product {product_id}/{variant} x{quantity} to cart {cart.id}")
                    cart.items.append(
                        CartItemModel(product_id=product_id, variant=variant, quantity=quantity, price=price)
                    )

                # sumy po WSZYSTKICH liniach, nie tylko dotknietej
                count, total = recompute_totals(cart.items)
                rowcount = self.repo.update_cart_version(
                    cart_id=cart.id,
                    old_version=old_version,
                    new_data={
                        "version": old_version + 1,
                        "product_count": count,
                        "total_price": total,
                        "updated_at": utcnow(),
                    },
                )
                if rowcount == 0:
                    raise CartConflict()

            self.repo.commit()

        except IntegrityError as e:
            # rownolegle utworzenie koszyka / linii - unique constraint
            logger.warning(f"Cart write conflict for {owner}: {e.orig}")
            self.repo.rollback()
            raise CartConflict() from e
        except CartConflict:
            logger.warning(f"Cart version conflict for {owner}, retrying")
            self.repo.rollback()
            raise

        return self._present(cart)

    def remove_item(
        self,
        owner: CartOwner,
        product_id: int,
        variant: str | None,
        remove_entirely: bool = False,
    ) -> Dict[str, Any]:
        if not variant:
            raise VariantRequired()
        self._require_owner(owner)
        return self._remove_line(owner, product_id, variant, remove_entirely)

    @conflict_retry(CartConflict)
    def _remove_line(
        self,
        owner: CartOwner,
        product_id: int,
        variant: str,
        remove_entirely: bool,
    ) -> Dict[str, Any]:
        cart = self._load(owner)
        if cart is None:
            return empty_cart(owner)

        line = find_line(cart, product_id, variant)
        if line is None:
            return self._present(cart)

        old_version = cart.version

        try:
            # ilosc nigdy ponizej zera - ostatnia sztuka usuwa linie
            if remove_entirely or line.quantity <= 1:
                cart.items.remove(line)
            else:
                line.quantity -= 1

            if not cart.items:
                cart_id = cart.id
                if self.repo.delete_cart(cart, old_version) == 0:
                    raise CartConflict()
                self.repo.commit()
                logger.info(f"Cart {cart_id} is empty, deleted")
                return empty_cart(owner)

            count, total = recompute_totals(cart.items)
            rowcount = self.repo.update_cart_version(
                cart_id=cart.id,
                old_version=old_version,
                new_data={
                    "version": old_version + 1,
                    "product_count": count,
                    "total_price": total,
                    "updated_at": utcnow(),
                },
            )
            if rowcount == 0:
                raise CartConflict()

            self.repo.commit()

        except IntegrityError as e:
            logger.warning(f"Cart write conflict for {owner}: {e.orig}")
            self.repo.rollback()
            raise CartConflict() from e
        except CartConflict:
            logger.warning(f"Cart version conflict for {owner}, retrying")
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id}/{variant} removed from cart {cart.id}")
        return self._present(cart)

    # helpers
    @staticmethod
    def _require_owner(owner: CartOwner):
        if owner.user_id is None and not owner.session_id and owner.cart_id is None:
            raise SessionRequired()

    def _load(self, owner: CartOwner) -> CartModel | None:
        if owner.cart_id is not None:
            cart = self.repo.get_cart(owner.cart_id)
            if cart is not None and not self._owned_by(cart, owner):
                raise CartAccessDenied()
            return cart
        if owner.user_id is not None:
            return self.repo.get_cart_by_user(owner.user_id)
        if owner.session_id:
            return self.repo.get_cart_by_session(owner.session_id)
        raise SessionRequired()

    @staticmethod
    def _owned_by(cart: CartModel, owner: CartOwner) -> bool:
        if owner.user_id is not None and cart.user_id == owner.user_id:
            return True
        return bool(owner.session_id) and cart.session_id == owner.session_id

    def _present(self, cart: CartModel) -> Dict[str, Any]:
        # nazwa / zdjecie / typ dociagane z katalogu przy odczycie, nie zapisywane
        products = self.products.get_products(i.product_id for i in cart.items)

        items = []
        for i in cart.items:
            product = products.get(i.product_id)
            items.append(
                {
                    "product_id": i.product_id,
                    "variant": i.variant,
                    "quantity": i.quantity,
                    "price": i.price,
                    "total_price": i.total_price,
                    "product_name": product.name if product else None,
                    "product_image": (product.image_urls or [None])[0] if product else None,
                    "product_type": product.product_type if product else None,
                }
            )

        return {
            "id": cart.id,
            "created_at": cart.created_at,
            "user_id": cart.user_id,
            "session_id": cart.session_id,
            "items": items,
            "product_count": cart.product_count,
            "total_price": cart.total_price,
        }
