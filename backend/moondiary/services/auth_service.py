"""
Accounts: sign-up, credential login, profile sync, password flows and account deletion.

Supabase Auth owns credentials; ``user_profiles`` mirrors id/email/nickname.
A database trigger normally creates the profile row at sign-up, so the
explicit inserts here are a fallback and their failures are only logged.

``client`` is the request's client: the shared anon client for public routes,
or a user-scoped client for signed-in ones. Password sign-ins and token
refreshes always run on a fresh client from ``session_factory`` because they
rewrite that client's auth header.
"""
import logging
from typing import Callable, Optional, Tuple

from supabase import Client

from ..config import (
    DEFAULT_NICKNAME,
    FRONTEND_URL,
    NICKNAME_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    PROFILE_TABLE,
)
from ..core.db import create_anon_client, get_admin_client
from ..core.errors import (
    SESSION_EXPIRED_MESSAGE,
    AccountDeletionError,
    AuthError,
    NotFoundError,
    ValidationError,
)
from ..models.user import User, UserProfile

logger = logging.getLogger(__name__)


def validate_nickname(nickname: str) -> str:
    nickname = (nickname or "").strip()
    if not nickname:
        raise ValidationError("닉네임을 입력해주세요.")
    if len(nickname) > NICKNAME_MAX_LENGTH:
        raise ValidationError(f"닉네임은 최대 {NICKNAME_MAX_LENGTH}자까지 입력 가능합니다.")
    return nickname


def validate_password(password: str, confirm_password: Optional[str] = None) -> None:
    if confirm_password is not None and password != confirm_password:
        raise ValidationError("비밀번호가 일치하지 않습니다.")
    if len(password or "") < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"비밀번호는 최소 {PASSWORD_MIN_LENGTH}자 이상이어야 합니다.")


def fallback_nickname(metadata: Optional[dict], email: Optional[str]) -> str:
    if metadata and metadata.get("nickname"):
        return metadata["nickname"]
    if email and email.split("@")[0]:
        return email.split("@")[0]
    return DEFAULT_NICKNAME


class AuthService:
    def __init__(
        self,
        client: Client,
        admin_factory: Callable[[], Client] = get_admin_client,
        session_factory: Callable[[], Client] = create_anon_client,
    ):
        self.client = client
        self.admin_factory = admin_factory
        self.session_factory = session_factory

    # MARK: - Profiles

    def get_profile(self, user_id: str, client: Optional[Client] = None) -> Optional[UserProfile]:
        try:
            response = (client or self.client).table(PROFILE_TABLE).select("*").eq("id", user_id).limit(1).execute()
        except Exception as e:
            # Missing rows are not errors here; only network/server failures reach this
            logger.error(f"[PROFILE] ❌ fetch failed: user_id={user_id}, error={e}")
            return None
        if not response.data:
            return None
        return UserProfile.model_validate(response.data[0])

    def _create_profile(
        self,
        user_id: str,
        email: str,
        nickname: str,
        client: Optional[Client] = None,
    ) -> Optional[UserProfile]:
        try:
            response = (client or self.client).table(PROFILE_TABLE).insert(
                {"id": user_id, "email": email, "nickname": nickname}
            ).execute()
        except Exception as e:
            logger.warning(f"[PROFILE] ⚠️ insert failed (trigger may have created it): user_id={user_id}, error={e}")
            return None
        if not response.data:
            return None
        return UserProfile.model_validate(response.data[0])

    def ensure_profile(
        self,
        user_id: str,
        email: str,
        metadata: Optional[dict],
        client: Optional[Client] = None,
    ) -> UserProfile:
        profile = self.get_profile(user_id, client)
        if profile:
            return profile

        logger.info(f"[PROFILE] Profile not found, creating one: user_id={user_id}")
        profile = self._create_profile(user_id, email, fallback_nickname(metadata, email), client)
        if profile:
            return profile

        # Insert can lose a race with the sign-up trigger; read once more
        profile = self.get_profile(user_id, client)
        if not profile:
            raise AuthError("프로필 생성에 실패했습니다.")
        return profile

    def update_nickname(self, user_id: str, nickname: str) -> UserProfile:
        nickname = validate_nickname(nickname)
        try:
            self.client.table(PROFILE_TABLE).update({"nickname": nickname}).eq("id", user_id).execute()
        except Exception as e:
            logger.error(f"[PROFILE] ❌ nickname update failed: user_id={user_id}, error={e}")
            raise ValidationError("닉네임 변경에 실패했습니다.")

        profile = self.get_profile(user_id)
        if not profile:
            raise NotFoundError("프로필 정보를 가져올 수 없습니다.")
        logger.info(f"[PROFILE] ✅ nickname updated: user_id={user_id}")
        return profile

    def find_email_by_nickname(self, nickname: str) -> str:
        nickname = (nickname or "").strip()
        not_found = NotFoundError("해당 닉네임으로 등록된 이메일을 찾을 수 없습니다.")
        if not nickname:
            raise not_found
        try:
            response = self.client.table(PROFILE_TABLE).select("email").eq("nickname", nickname).limit(1).execute()
        except Exception as e:
            logger.error(f"[FIND_EMAIL] ❌ query failed: error={e}")
            raise not_found
        if not response.data:
            raise not_found
        return response.data[0]["email"]

    # MARK: - Credentials

    def sign_up(self, email: str, password: str, nickname: str) -> Tuple[UserProfile, bool]:
        """Returns the profile and whether a session was issued (False = confirm email first)."""
        nickname = validate_nickname(nickname)
        validate_password(password)
        logger.info(f"[SIGNUP] start: email={email}")

        session_client = self.session_factory()
        try:
            auth_response = session_client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"nickname": nickname}},
            })
        except Exception as e:
            logger.error(f"[SIGNUP] ❌ failed: email={email}, error={e}")
            raise AuthError(str(getattr(e, "message", None) or e) or "회원가입에 실패했습니다.")

        if not auth_response.user:
            raise AuthError("회원가입에 실패했습니다.")

        user_id = auth_response.user.id
        profile = UserProfile(id=user_id, email=email, nickname=nickname)
        has_session = auth_response.session is not None
        if has_session:
            # The trigger covers the no-session case
            self._create_profile(user_id, email, nickname, session_client)

        logger.info(f"[SIGNUP] ✅ user_id={user_id}, session={'yes' if has_session else 'email confirmation pending'}")
        return profile, has_session

    def authorize(self, email: str, password: str) -> User:
        """Credential login. Returns the session user, carrying the Supabase token pair."""
        if not email or not password:
            raise AuthError("이메일과 비밀번호를 입력해주세요.")

        session_client = self.session_factory()
        try:
            auth_response = session_client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.warning(f"[LOGIN] login failed: email={email}, error={e}")
            raise AuthError("이메일 또는 비밀번호가 올바르지 않습니다.")

        if not auth_response.user:
            raise AuthError("사용자 정보를 찾을 수 없습니다.")

        auth_user = auth_response.user
        # session_client now carries this user's token, so RLS sees the right row
        profile = self.ensure_profile(auth_user.id, auth_user.email or email, auth_user.user_metadata, session_client)
        session = auth_response.session
        logger.info(f"[LOGIN] ✅ user_id={auth_user.id}")
        return User(
            id=auth_user.id,
            email=profile.email,
            nickname=profile.nickname,
            access_token=session.access_token if session else None,
            refresh_token=session.refresh_token if session else None,
        )

    def refresh_session(self, user: User) -> User:
        """Trades the stored refresh token for a new token pair and re-reads the profile."""
        if not user.refresh_token:
            raise AuthError(SESSION_EXPIRED_MESSAGE)

        session_client = self.session_factory()
        try:
            auth_response = session_client.auth.refresh_session(user.refresh_token)
        except Exception as e:
            logger.warning(f"[REFRESH] refresh token rejected: user_id={user.id}, error={e}")
            raise AuthError(SESSION_EXPIRED_MESSAGE)

        session = auth_response.session
        if session is None:
            raise AuthError(SESSION_EXPIRED_MESSAGE)

        refreshed = user.model_copy(update={
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
        })
        profile = self.get_profile(user.id, session_client)
        if profile:
            refreshed = refreshed.model_copy(update={"email": profile.email, "nickname": profile.nickname})
        logger.info(f"[REFRESH] ✅ user_id={user.id}")
        return refreshed

    def verify_password(self, email: str, password: str) -> bool:
        """Re-authentication before destructive actions."""
        if not email or not (password or "").strip():
            return False
        try:
            auth_response = self.session_factory().auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.info(f"[REAUTH] password rejected: email={email}, error={e}")
            return False
        return auth_response.user is not None

    def sign_out(self, access_token: Optional[str]) -> None:
        """Revokes the user's Supabase refresh tokens. Best effort."""
        if not access_token:
            return
        try:
            self.session_factory().auth.admin.sign_out(access_token)
        except Exception as e:
            logger.warning(f"[LOGOUT] ⚠️ Supabase sign-out failed (session cookie still cleared): {e}")

    def request_password_reset(self, email: str) -> None:
        try:
            self.client.auth.reset_password_for_email(email, {"redirect_to": f"{FRONTEND_URL}/reset-password"})
        except Exception as e:
            logger.error(f"[PASSWORD_RESET] ❌ failed: email={email}, error={e}")
            raise AuthError(str(getattr(e, "message", None) or e) or "비밀번호 재설정 메일 발송에 실패했습니다.")
        logger.info(f"[PASSWORD_RESET] ✉️ reset mail requested: email={email}")

    def update_password(self, access_token: str, password: str, confirm_password: str) -> None:
        """Sets a new password for the user behind a recovery/access token."""
        validate_password(password, confirm_password)
        if not access_token:
            raise AuthError("잘못된 링크입니다.")

        try:
            user_response = self.client.auth.get_user(access_token)
        except Exception as e:
            logger.warning(f"[PASSWORD_UPDATE] invalid token: {e}")
            raise AuthError("잘못된 링크입니다.")
        if not user_response or not user_response.user:
            raise AuthError("잘못된 링크입니다.")

        user_id = user_response.user.id
        admin_client = self.admin_factory()
        try:
            admin_client.auth.admin.update_user_by_id(user_id, {"password": password})
        except Exception as e:
            logger.error(f"[PASSWORD_UPDATE] ❌ failed: user_id={user_id}, error={e}")
            raise AuthError(str(getattr(e, "message", None) or e) or "비밀번호 재설정에 실패했습니다.")
        logger.info(f"[PASSWORD_UPDATE] ✅ user_id={user_id}")

    # MARK: - Account deletion

    def delete_account(self, user_id: str) -> None:
        """
        Deletes the profile row, then the auth user.

        There is no rollback: if the auth deletion fails after the profile is
        gone, the account is left half-deleted and this is logged.
        """
        admin_client = self.admin_factory()
        logger.info(f"[DELETE_ACCOUNT] 🗑️ start: user_id={user_id}")

        try:
            admin_client.table(PROFILE_TABLE).delete().eq("id", user_id).execute()
        except Exception as e:
            logger.error(f"[DELETE_ACCOUNT] ❌ profile delete failed: user_id={user_id}, error={e}")
            raise AccountDeletionError(str(getattr(e, "message", None) or e))

        try:
            admin_client.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error(
                f"[DELETE_ACCOUNT] ❌ auth user delete failed after profile removal; "
                f"account left inconsistent: user_id={user_id}, error={e}"
            )
            raise AccountDeletionError(str(getattr(e, "message", None) or e))

        logger.info(f"[DELETE_ACCOUNT] ✅ user_id={user_id}")
