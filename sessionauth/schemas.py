"""Auth request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from sessionauth.models import Session, TokenPair


class ApiResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = Field(alias="refreshToken", min_length=1)


class TokenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    token_type: str = Field(default="Bearer", alias="tokenType")
    refresh_token: str = Field(alias="refreshToken")
    subject_id: str = Field(alias="subjectId")

    @classmethod
    def from_pair(cls, tokens: TokenPair) -> "TokenResponse":
        return cls(
            access_token=tokens.access_token,
            token_type=tokens.token_type,
            refresh_token=tokens.refresh_token,
            subject_id=tokens.subject_id,
        )


class SessionInfo(BaseModel):
    """Active session as shown to its owner. The refresh token itself is never echoed."""

    created_at: int
    expires_at: int
    ip_address: str | None = None
    user_agent: str | None = None
    used: bool
    last_used_at: int | None = None

    @classmethod
    def from_session(cls, session: Session) -> "SessionInfo":
        return cls(
            created_at=session.created_at,
            expires_at=session.expires_at,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            used=session.used,
            last_used_at=session.last_used_at,
        )
