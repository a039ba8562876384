"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Credentials arrive as an "Authorization: Bearer <token>" header. Header
problems are mapped to AuthError here, before any use case runs:

  missing header              -> 401 "Authentication token not provided"
  not "Bearer <token>"        -> 401 "Invalid token format. Use: Bearer <token>"
  empty / expired / invalid   -> 401 with the TokenValidation message

get_current_principal() returns the verified TokenPayload; it does not hit
the store. Routes that need the full record run GetCurrentUserUseCase.
require_admin() wraps it and raises ForbiddenError for non-admins.

The JWTService is read from request.app.state.jwt_service, which the
lifespan in api/main.py populates.

Layer rule: auth/dependencies.py may import from fastapi because this module
is part of the FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request

from auth.models import TokenPayload, UserRole
from auth.rbac import Ability, create_ability_for_user
from auth.tokens import JWTService
from core.errors import AuthError, ForbiddenError

logger = logging.getLogger("scaffold.auth")

_BEARER = "Bearer"


def get_bearer_token(request: Request) -> str:
    """Extract the raw token from the Authorization header."""
    header = request.headers.get("Authorization")
    if not header:
        raise AuthError("Authentication token not provided")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != _BEARER:
        raise AuthError("Invalid token format. Use: Bearer <token>")
    return parts[1]


def get_current_principal(request: Request, token: str = Depends(get_bearer_token)) -> TokenPayload:
    """Require a valid access token. Raises AuthError (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(principal: TokenPayload = Depends(get_current_principal)): ...
    """
    jwt_service: JWTService = request.app.state.jwt_service
    result = jwt_service.validate(token)
    if not result.valid or result.payload is None:
        logger.info("Rejected bearer token: %s", result.failure.value if result.failure else "unknown")
        raise AuthError(result.message or "Invalid token.")
    request.state.principal = result.payload
    return result.payload


def require_admin(principal: TokenPayload = Depends(get_current_principal)) -> TokenPayload:
    """Require the ADMIN role. 401 if unauthenticated, 403 if authenticated as anyone else."""
    if principal.role is not UserRole.ADMIN:
        raise ForbiddenError("Admin access required.")
    return principal


def get_ability(principal: TokenPayload = Depends(get_current_principal)) -> Ability:
    return create_ability_for_user(principal)
