from typing import Optional

from pydantic import BaseModel, EmailStr


class User(BaseModel):
    """The signed-in user as carried by the session token."""

    id: str
    email: str = ""
    nickname: str = ""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class UserProfile(BaseModel):
    id: str
    email: str
    nickname: str


class SignupRequest(BaseModel):
    email: EmailStr
    password: str
    nickname: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserProfile


class SignupResponse(BaseModel):
    user: UserProfile
    # False when the provider wants the email confirmed before the first login
    session_created: bool
    message: str


class NicknameUpdate(BaseModel):
    nickname: str


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordUpdateRequest(BaseModel):
    access_token: str
    password: str
    confirm_password: str


class FindEmailRequest(BaseModel):
    nickname: str


class ReauthenticateRequest(BaseModel):
    password: str
