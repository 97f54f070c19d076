import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from ..config import LEGACY_SESSION_COOKIE_NAMES, SESSION_COOKIE_NAME
from ..core.errors import AccountDeletionError, ConfigurationError
from ..models.user import ReauthenticateRequest, User
from ..services.auth_service import AuthService
from .auth import get_auth_service, get_current_user, get_optional_user

router = APIRouter()
logger = logging.getLogger(__name__)

SESSION_COOKIE_NAMES = (SESSION_COOKIE_NAME, *LEGACY_SESSION_COOKIE_NAMES)


def _clear_session_cookies(response: JSONResponse) -> None:
    for name in SESSION_COOKIE_NAMES:
        # Browsers only accept __Secure- cookies (deletions included) with the secure flag
        response.delete_cookie(name, path="/", secure=name.startswith("__Secure-"))


@router.post("/reauthenticate")
def reauthenticate(
    request: ReauthenticateRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Password check before destructive actions such as account deletion."""
    if not request.password.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="비밀번호를 입력해주세요.")
    if not auth_service.verify_password(current_user.email, request.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="비밀번호가 올바르지 않습니다.")
    return {"ok": True}


@router.delete("/delete")
def delete_user_account(
    user: Optional[User] = Depends(get_optional_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Permanently deletes the signed-in account.

    The profile row goes first, then the Supabase auth user. Session cookies
    are cleared on success so the client lands logged out.
    """
    if user is None:
        return JSONResponse({"error": "Unauthorized"}, status_code=status.HTTP_401_UNAUTHORIZED)

    logger.info(f"[DELETE_ACCOUNT] 🗑️ request: user_id={user.id}")
    try:
        auth_service.delete_account(user.id)
    except ConfigurationError as e:
        logger.error(f"[DELETE_ACCOUNT] ❌ admin client unavailable: {e.message}")
        return JSONResponse(
            {"error": "서버 설정 오류: SUPABASE_SERVICE_ROLE_KEY가 설정되지 않았습니다."},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    except AccountDeletionError as e:
        return JSONResponse({"error": e.message}, status_code=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"[DELETE_ACCOUNT] ❌ unexpected error: user_id={user.id}, error={e}", exc_info=True)
        return JSONResponse(
            {"error": "회원 탈퇴 중 오류가 발생했습니다."},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    response = JSONResponse({"ok": True})
    _clear_session_cookies(response)
    return response
