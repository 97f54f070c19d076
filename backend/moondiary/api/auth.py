import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import APP_ENV, SESSION_COOKIE_NAME, SESSION_MAX_AGE_SECONDS
from ..core.db import create_user_client, get_client
from ..core.errors import SESSION_EXPIRED_MESSAGE, MoonDiaryError
from ..core.security import create_session_token, decode_session_token
from ..models.user import (
    FindEmailRequest,
    LoginRequest,
    PasswordResetRequest,
    PasswordUpdateRequest,
    SessionResponse,
    SignupRequest,
    SignupResponse,
    User,
    UserProfile,
)
from ..services.auth_service import AuthService
from .errors import to_http_exception

router = APIRouter()
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


# MARK: - Authentication Helper
def _session_token(
    credentials: Optional[HTTPAuthorizationCredentials],
    session_cookie: Optional[str],
) -> Optional[str]:
    return credentials.credentials if credentials else session_cookie


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session_cookie: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE_NAME),
) -> Optional[User]:
    """Session user, or None when there is no valid session."""
    token = _session_token(credentials, session_cookie)
    return decode_session_token(token) if token else None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session_cookie: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE_NAME),
) -> User:
    """Session user from the bearer token or the session cookie."""
    token = _session_token(credentials, session_cookie)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="로그인이 필요합니다.")

    user = decode_session_token(token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=SESSION_EXPIRED_MESSAGE)
    return user


def get_auth_service() -> AuthService:
    """For public routes (sign-up, login, password reset, find email)."""
    return AuthService(get_client())


def get_user_auth_service(current_user: User = Depends(get_current_user)) -> AuthService:
    """Profile reads and writes run as the session user so row-level security applies."""
    return AuthService(create_user_client(current_user.access_token))


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=SESSION_MAX_AGE_SECONDS,
        path="/",
        httponly=True,
        samesite="lax",
        secure=APP_ENV == "production",
    )


def _session_response(user: User) -> SessionResponse:
    return SessionResponse(
        access_token=create_session_token(user),
        user=UserProfile(id=user.id, email=user.email, nickname=user.nickname),
    )


# MARK: - Auth Endpoints
@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(request: SignupRequest, auth_service: AuthService = Depends(get_auth_service)):
    try:
        profile, session_created = auth_service.sign_up(request.email, request.password, request.nickname)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    return SignupResponse(
        user=profile,
        session_created=session_created,
        message="회원가입이 완료되었습니다. 이메일을 확인해주세요.",
    )


@router.post("/login", response_model=SessionResponse)
def login(
    request: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
):
    logger.info(f"[LOGIN] request: email={request.email}")
    try:
        user = auth_service.authorize(request.email, request.password)
    except MoonDiaryError as e:
        raise to_http_exception(e)

    session = _session_response(user)
    set_session_cookie(response, session.access_token)
    return session


@router.post("/refresh", response_model=SessionResponse)
def refresh(
    response: Response,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Re-issue the session with a fresh Supabase token pair and the latest profile fields."""
    try:
        user = auth_service.refresh_session(current_user)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    session = _session_response(user)
    set_session_cookie(response, session.access_token)
    return session


@router.post("/logout")
def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.sign_out(current_user.access_token)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return {"ok": True}


@router.post("/password/reset")
def request_password_reset(
    request: PasswordResetRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        auth_service.request_password_reset(request.email)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    return {"ok": True, "message": "비밀번호 재설정 메일을 보냈습니다."}


@router.post("/password/update")
def update_password(
    request: PasswordUpdateRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        auth_service.update_password(request.access_token, request.password, request.confirm_password)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    return {"ok": True, "message": "비밀번호가 성공적으로 변경되었습니다."}


@router.post("/find-email")
def find_email(request: FindEmailRequest, auth_service: AuthService = Depends(get_auth_service)):
    try:
        email = auth_service.find_email_by_nickname(request.nickname)
    except MoonDiaryError as e:
        raise to_http_exception(e)
    return {"email": email}
