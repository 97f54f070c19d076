import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.errors import MoonDiaryError
from ..models.user import NicknameUpdate, User, UserProfile
from ..services.auth_service import AuthService
from .auth import get_current_user, get_user_auth_service
from .errors import to_http_exception

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/profile", response_model=UserProfile)
def get_user_profile(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_user_auth_service),
):
    """Profile row for the session user; falls back to the session fields if the row is missing."""
    logger.info(f"[GET_PROFILE] 🔍 user_id={current_user.id}")
    profile = auth_service.get_profile(current_user.id)
    if profile:
        return profile
    logger.warning(f"[GET_PROFILE] ⚠️ no profile row, using session data: user_id={current_user.id}")
    if not current_user.email:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="프로필 정보를 가져올 수 없습니다.")
    return UserProfile(id=current_user.id, email=current_user.email, nickname=current_user.nickname)


@router.put("/profile", response_model=UserProfile)
def update_user_profile(
    update: NicknameUpdate,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_user_auth_service),
):
    try:
        return auth_service.update_nickname(current_user.id, update.nickname)
    except MoonDiaryError as e:
        raise to_http_exception(e)
