# storefront/api/routers/users.py
from fastapi import APIRouter, Depends, Request

from storefront.api.deps import get_otp_service, get_user_service, session_token_from
from storefront.domain.schemas import IdentityResponse, IssueOtpResponse, LoginIn, OtpAuthIn
from storefront.services.otp_service import OtpService
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/login", response_model=IdentityResponse)
def login(payload: LoginIn, svc: UserService = Depends(get_user_service)):
    return svc.login_with_session(payload.session_token)


@router.post("/otpAuth", response_model=IdentityResponse)
def otp_auth(
    payload: OtpAuthIn,
    request: Request,
    svc: UserService = Depends(get_user_service),
):
    return svc.otp_login(payload.code, session_token_from(request, payload.session_token))


@router.post("/{user_id}/otp", response_model=IssueOtpResponse)
def issue_otp(user_id: int, svc: OtpService = Depends(get_otp_service)):
    # kod idzie tylko kanalem powiadomien, nigdy w odpowiedzi
    record = svc.issue(user_id)
    return {"expires_at": record.expires_at}
