"""Authentication gate for FastAPI.

Establishes caller identity from a bearer credential. The gate never
rejects a request: revoked, expired, malformed or forged credentials simply
leave the request without an identity, and route dependencies decide
whether that is acceptable.
"""

from __future__ import annotations

import logging
from typing import Iterable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from sessionauth.exceptions import InvalidCredentialError
from sessionauth.models import Identity
from sessionauth.security import CredentialIssuer
from sessionauth.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


class AuthenticationGate(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        session_manager: SessionManager,
        issuer: CredentialIssuer,
        header_name: str = "Authorization",
        header_prefix: str = "Bearer ",
        public_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.session_manager = session_manager
        self.issuer = issuer
        self.header_name = header_name
        self.header_prefix = header_prefix
        self.public_paths = tuple(public_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.identity = None

        if any(request.url.path.startswith(path) for path in self.public_paths):
            return await call_next(request)

        token = self._extract_token(request)
        if token:
            request.state.identity = await self.authenticate(token)
        else:
            logger.debug("No bearer credential on request")

        return await call_next(request)

    def _extract_token(self, request: Request) -> str | None:
        header = request.headers.get(self.header_name)
        if not header or not header.startswith(self.header_prefix):
            return None
        return header[len(self.header_prefix):].strip() or None

    async def authenticate(self, token: str) -> Identity | None:
        """Return the identity carried by ``token``, or None."""
        try:
            if await self.session_manager.is_revoked(token):
                logger.warning("Revoked credential presented")
                return None
            claims = self.issuer.verify_access(token)
        except InvalidCredentialError as exc:
            logger.warning(f"Credential rejected: {exc.message}")
            return None
        except Exception as exc:
            logger.error(f"Error processing credential: {exc}")
            return None

        logger.debug(f"Credential accepted for user {claims['sub']}")
        return Identity(user_id=claims["sub"], email=claims.get("email"), token=token)
