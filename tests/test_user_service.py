from storefront.data.models import UserModel
from storefront.repos.cart_repo import CartRepo
from storefront.services.cart_service import CartOwner, CartService
from storefront.services.otp_service import OtpService
from storefront.services.session_service import SessionService
from storefront.services.user_service import UserService


def make_service(db, notifier):
    return UserService(db, SessionService(db), OtpService(db, notifier))


def test_session_login_creates_user_and_promotes_cart(db, product, notifier):
    token = SessionService(db).ensure_session(None)
    CartService(db).add_item(CartOwner(session_id=token), product.id, "small")

    identity = make_service(db, notifier).login_with_session(token)

    user = db.query(UserModel).filter_by(session_id=token).one()
    assert identity["user_id"] == user.id
    assert identity["address"] is None
    assert CartRepo(db).get_cart_by_user(user.id).product_count == 1


def test_repeated_login_finds_same_user(db, notifier):
    token = SessionService(db).ensure_session(None)
    svc = make_service(db, notifier)

    first = svc.login_with_session(token)
    second = svc.login_with_session(token)

    assert first["user_id"] == second["user_id"]
    assert db.query(UserModel).count() == 1


def test_identity_includes_default_address(db, user, address, notifier):
    identity = make_service(db, notifier).identity(user)

    assert identity["user"] == {"first_name": "Asha", "last_name": "Rao", "email": "asha@example.com"}
    assert identity["address"]["pincode"] == "560038"
    assert identity["address"]["locality"] == "Indiranagar"


def test_otp_login_promotes_supplied_session(db, user, product, notifier):
    svc = make_service(db, notifier)
    token = SessionService(db).ensure_session(None)
    CartService(db).add_item(CartOwner(session_id=token), product.id, "large")
    code = svc.otps.issue(user.id).otp

    identity = svc.otp_login(code, session_token=token)

    assert identity["user_id"] == user.id
    db.expire_all()
    assert CartRepo(db).get_cart_by_user(user.id).product_count == 1
    assert CartRepo(db).get_cart_by_session(token) is None
