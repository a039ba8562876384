"""
api/routes/v1/users.py -- User directory endpoints guarded by RBAC.

Routes:
  GET /api/v1/users            -- paginated user list (admin only)
  GET /api/v1/users/{user_id}  -- one user; own record, or any record for admins

The detail route asks the caller's Ability whether it may READ this
particular User (USER role: only when the id matches its own token). The
check runs before the lookup, so a non-admin cannot learn which ids exist.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from api.models import ErrorResponse, UserPageResponse, UserResponse
from auth.dependencies import get_ability, require_admin
from auth.models import TokenPayload
from auth.rbac import Ability, Action, Subject
from auth.use_cases import GetCurrentUserUseCase, ListUsersUseCase
from core.errors import ForbiddenError
from core.pagination import DEFAULT_PAGE, DEFAULT_PER_PAGE, MAX_PER_PAGE, PageRequest

router = APIRouter()


@router.get(
    "/users",
    response_model=UserPageResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Admin access required"},
    },
)
async def list_users(
    request: Request,
    page: int = Query(DEFAULT_PAGE, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE),
    admin: TokenPayload = Depends(require_admin),
) -> UserPageResponse:
    """List all users, oldest first. Admin only."""
    page_request = PageRequest(page=page, per_page=per_page)
    result = await ListUsersUseCase(request.app.state.user_store).execute(page_request)
    return UserPageResponse.from_page(result)


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not allowed to read this user"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def get_user(
    request: Request,
    user_id: str,
    ability: Ability = Depends(get_ability),
) -> UserResponse:
    """Return one user's public profile."""
    if ability.cannot(Action.READ, Subject.USER, {"id": user_id}):
        raise ForbiddenError("You do not have permission to read this user.", details={"user_id": user_id})
    user = await GetCurrentUserUseCase(request.app.state.user_store).execute(user_id)
    return UserResponse.from_public(user)
