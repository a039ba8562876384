"""
api/routes/v1/auth.py -- Registration, login and current-user endpoints.

Routes:
  POST /api/v1/auth/register  -- create account; 201 {user, token}
  POST /api/v1/auth/login     -- password login; 200 {user, token}
  GET  /api/v1/auth/me        -- current user profile (requires bearer token)

Handlers stay thin: build the use case from app.state collaborators, call
execute(), map the result to the response model. AppError subclasses raised
by the use cases are rendered by the handler registered in api/main.py.

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  Login and register responses carry Cache-Control: no-store -- they contain
  a bearer token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    LoginUserResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from auth.dependencies import get_current_principal
from auth.models import TokenPayload
from auth.use_cases import GetCurrentUserUseCase, LoginInput, LoginUseCase, RegisterUserUseCase
from core.config import get_settings

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public, rate-limited
# - GET  /api/v1/auth/me:       requires bearer token (get_current_principal)
router = APIRouter()

_settings = get_settings()


def _register_use_case(request: Request) -> RegisterUserUseCase:
    state = request.app.state
    return RegisterUserUseCase(state.user_store, state.password_hasher, state.jwt_service)


def _login_use_case(request: Request) -> LoginUseCase:
    state = request.app.state
    return LoginUseCase(state.user_store, state.password_hasher, state.jwt_service)


def _current_user_use_case(request: Request) -> GetCurrentUserUseCase:
    return GetCurrentUserUseCase(request.app.state.user_store)


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/auth/register",
    response_model=RegisterResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse, "description": "Validation error or email already in use"}},
)
async def register(
    body: RegisterRequest,
    use_case: RegisterUserUseCase = Depends(_register_use_case),
) -> JSONResponse:
    """Create a new account and return it with an access token."""
    result = await use_case.execute(body.model_dump())
    resp = JSONResponse(
        status_code=201,
        content=RegisterResponse(
            user=UserResponse.from_public(result.user),
            token=result.token,
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Validation error or account cannot authenticate"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        429: {"model": ErrorResponse, "description": "Too many login attempts"},
    },
)
@limiter.limit(_settings.login_rate_limit)  # must stay below @router.post
async def login(
    request: Request,
    body: LoginRequest,
    use_case: LoginUseCase = Depends(_login_use_case),
) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email and wrong password return the same 401 body so the
    response does not reveal whether an account exists.
    """
    result = await use_case.execute(LoginInput(email=body.email, password=body.password))
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            user=LoginUserResponse.from_login_user(result.user),
            token=result.token,
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/auth/me",
    response_model=UserResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def me(
    principal: TokenPayload = Depends(get_current_principal),
    use_case: GetCurrentUserUseCase = Depends(_current_user_use_case),
) -> UserResponse:
    """Return the profile of the user the bearer token belongs to."""
    return UserResponse.from_public(await use_case.execute(principal.user_id))
