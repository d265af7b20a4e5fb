"""Auth API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from sessionauth.dependencies import (
    get_auth_service,
    get_client_ip,
    get_user_agent,
    require_identity,
)
from sessionauth.models import Identity
from sessionauth.schemas import (
    ApiResponse,
    LoginRequest,
    RefreshRequest,
    SessionInfo,
    TokenResponse,
)
from sessionauth.services.auth_service import AuthService

router = APIRouter()


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    ip_address: str = Depends(get_client_ip),
    user_agent: str = Depends(get_user_agent),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    result = await auth_service.login(payload.email, payload.password, ip_address, user_agent)
    return TokenResponse.from_pair(result["tokens"])


@router.post("/refresh", response_model=TokenResponse, status_code=status.HTTP_200_OK)
async def refresh(
    payload: RefreshRequest,
    ip_address: str = Depends(get_client_ip),
    user_agent: str = Depends(get_user_agent),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    tokens = await auth_service.refresh(payload.refresh_token, ip_address, user_agent)
    return TokenResponse.from_pair(tokens)


@router.post("/logout", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def logout(
    identity: Identity = Depends(require_identity),
    ip_address: str = Depends(get_client_ip),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    await auth_service.logout(identity, ip_address)
    return ApiResponse(success=True, message="Logged out", data={})


@router.post("/logout-all", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def logout_all(
    identity: Identity = Depends(require_identity),
    ip_address: str = Depends(get_client_ip),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    removed = await auth_service.logout_all(identity, ip_address)
    return ApiResponse(
        success=True,
        message="Logged out from all sessions",
        data={"sessions_removed": removed},
    )


@router.get("/sessions", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def sessions(
    identity: Identity = Depends(require_identity),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    active = await auth_service.list_sessions(identity)
    return ApiResponse(
        success=True,
        message="Active sessions retrieved",
        data={
            "sessions": [SessionInfo.from_session(s).model_dump() for s in active],
            "count": await auth_service.count_sessions(identity),
        },
    )


@router.post("/sessions/revoke", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def revoke_session(
    payload: RefreshRequest,
    identity: Identity = Depends(require_identity),
    auth_service: AuthService = Depends(get_auth_service),
) -> ApiResponse:
    await auth_service.revoke_session(identity, payload.refresh_token)
    return ApiResponse(success=True, message="Session revoked", data={})


@router.get("/me", response_model=ApiResponse, status_code=status.HTTP_200_OK)
async def me(identity: Identity = Depends(require_identity)) -> ApiResponse:
    return ApiResponse(
        success=True,
        message="User retrieved",
        data={
            "user": {
                "id": identity.user_id,
                "email": identity.email,
                "roles": list(identity.roles),
            }
        },
    )
