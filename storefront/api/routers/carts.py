# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, Query, Request, Response

from storefront.api.deps import get_cart_service, get_session_service, session_token_from
from storefront.domain.schemas import AddToCartIn, CartResponse, RemoveFromCartIn, SessionOut
from storefront.services.cart_service import CartOwner, CartService
from storefront.services.session_service import SessionService
from storefront.utils.settings import SESSION_COOKIE_NAME, SESSION_TTL_SECONDS

router = APIRouter(tags=["carts"])


@router.get("/session", response_model=SessionOut)
def ensure_session(
    request: Request,
    response: Response,
    svc: SessionService = Depends(get_session_service),
):
    """
    Zwraca wazny token sesji goscia (nowy jesli brak / wygasl) i ustawia cookie.
    """
    token = svc.ensure_session(session_token_from(request))
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=SESSION_TTL_SECONDS,
        httponly=True,
        samesite="lax",
    )
    return {"session_token": token}


@router.get("/carts", response_model=CartResponse)
def get_cart(
    request: Request,
    user_id: int | None = Query(None, alias="userId"),
    session_token: str | None = Query(None, alias="sessionToken"),
    svc: CartService = Depends(get_cart_service),
):
    owner = CartOwner(user_id=user_id, session_id=session_token_from(request, session_token))
    return {"cart": svc.get_cart(owner)}


@router.post("/carts/addToCart", response_model=CartResponse)
def add_to_cart(
    payload: AddToCartIn,
    request: Request,
    svc: CartService = Depends(get_cart_service),
):
    owner = CartOwner(
        user_id=payload.user_id,
        session_id=session_token_from(request, payload.session_token),
    )
    cart = svc.add_item(owner, payload.product_id, payload.variant, payload.quantity)
    return {"cart": cart}


@router.post("/carts/removeFromCart", response_model=CartResponse)
def remove_from_cart(
    payload: RemoveFromCartIn,
    request: Request,
    svc: CartService = Depends(get_cart_service),
):
    owner = CartOwner(
        user_id=payload.user_id,
        session_id=session_token_from(request, payload.session_token),
        cart_id=payload.cart_id,
    )
    cart = svc.remove_item(owner, payload.product_id, payload.variant, payload.remove_entirely)
    return {"cart": cart}
