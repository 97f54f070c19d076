"""Service-level exceptions. Routers translate these into HTTPException."""


class MoonDiaryError(Exception):
    """Base class; ``message`` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MoonDiaryError):
    pass


class NotFoundError(MoonDiaryError):
    pass


class AuthError(MoonDiaryError):
    pass


class ConfigurationError(MoonDiaryError):
    pass


class DiaryStoreError(MoonDiaryError):
    pass


class DuplicateEntryError(DiaryStoreError):
    pass


class MediaValidationError(ValidationError):
    pass


class MediaUploadError(MoonDiaryError):
    pass


class AccountDeletionError(MoonDiaryError):
    pass


SESSION_EXPIRED_MESSAGE = "세션이 만료되었습니다. 다시 로그인해주세요."
# PostgREST: PGRST301 = JWT could not be decoded/verified, PGRST303 = JWT expired
_EXPIRED_JWT_CODES = ("PGRST301", "PGRST303")
# Storage reports an expired token only in the message
_EXPIRED_JWT_MESSAGES = ("JWT expired", "jwt expired", '"exp" claim timestamp check failed')


def is_session_expired(error: Exception) -> bool:
    """True when Supabase rejected the request because the user's access token is no longer valid."""
    if getattr(error, "code", None) in _EXPIRED_JWT_CODES:
        return True
    message = str(getattr(error, "message", None) or error)
    return any(marker in message for marker in _EXPIRED_JWT_MESSAGES)
