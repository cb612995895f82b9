"""HTTP route definitions for the auth service."""

from __future__ import annotations

import logging

import redis
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from .errors import error_response, rate_limited_response
from ..config import get_settings
from ..domain.account import AccountView
from ..domain.contracts import LoginInput, SignupInput
from ..domain.errors import AuthError, StoreUnavailable
from ..domain.service import AuthService
from ..metrics import record_outcome
from ..security.rate_limiter import SlidingWindowRateLimiter
from ..security.redis_rate_limiter import RedisFixedWindowRateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class UserResponse(BaseModel):
    """Serialised representation of an `AccountView`."""

    id: str
    email: str
    name: str | None = None

    @classmethod
    def from_view(cls, view: AccountView) -> "UserResponse":
        return cls(id=view.account_id, email=view.email, name=view.display_name)


class AuthResponse(BaseModel):
    """Envelope returned by successful signup and login calls."""

    message: str
    user: UserResponse


class SignupRequest(BaseModel):
    """Signup payload. Presence of ``email`` and ``password`` is checked by the service."""

    email: str | None = None
    password: str | None = None
    name: str | None = None


class LoginRequest(BaseModel):
    """Login payload."""

    email: str | None = None
    password: str | None = None


settings = get_settings()


def _build_rate_limiter() -> SlidingWindowRateLimiter | RedisFixedWindowRateLimiter:
    """Instantiate the configured rate limiter backend, preferring Redis when available."""
    if settings.rate_limit_backend == "redis" and settings.redis_url:
        try:
            client = redis.from_url(settings.redis_url)
            client.ping()
        except redis.RedisError as exc:
            logger.warning("redis rate limiter unavailable, falling back to in-memory: %s", exc)
        else:
            logger.info("rate limiter configured for redis backend")
            return RedisFixedWindowRateLimiter(
                client,
                max_requests=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )

    logger.info("rate limiter using in-memory backend")
    return SlidingWindowRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


rate_limiter = _build_rate_limiter()


def get_service(request: Request) -> AuthService:
    """Resolve the `AuthService` stored on the FastAPI application state."""
    service: AuthService = request.app.state.auth_service
    return service


async def _within_rate_limit(operation: str, request: Request) -> bool:
    """Return ``False`` when the caller is over its attempt budget.

    A limiter backend failure lets the request through so that auth keeps working
    while Redis is down.
    """
    client = request.client.host if request.client else "unknown"
    try:
        allowed = await run_in_threadpool(rate_limiter.allow, f"{operation}:{client}")
    except redis.RedisError as exc:
        logger.warning("%s rate limit check skipped, limiter backend failed: %r", operation, exc)
        return True
    if not allowed:
        logger.warning("%s rate limited for client %s", operation, client)
        record_outcome(operation, "RateLimited")
    return allowed


def _failure(operation: str, email: str | None, exc: AuthError) -> JSONResponse:
    record_outcome(operation, exc.code)
    if isinstance(exc, StoreUnavailable):
        logger.error("%s failed for %s on credential store: %s", operation, email, exc.message)
        return error_response(exc, f"Server error during {operation}")
    logger.info("%s rejected for %s: %s", operation, email, exc.code)
    return error_response(exc)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    request: Request,
    service: AuthService = Depends(get_service),
) -> AuthResponse | JSONResponse:
    """Register an account and return its public view."""
    if not await _within_rate_limit("signup", request):
        return rate_limited_response()
    try:
        view = await service.signup(
            SignupInput(email=payload.email, secret=payload.password, display_name=payload.name)
        )
    except AuthError as exc:
        return _failure("signup", payload.email, exc)
    record_outcome("signup", "created")
    return AuthResponse(message="User created successfully", user=UserResponse.from_view(view))


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_service),
) -> AuthResponse | JSONResponse:
    """Verify credentials and return the account's public view."""
    if not await _within_rate_limit("login", request):
        return rate_limited_response()
    try:
        view = await service.login(LoginInput(email=payload.email, secret=payload.password))
    except AuthError as exc:
        return _failure("login", payload.email, exc)
    record_outcome("login", "succeeded")
    return AuthResponse(message="Login successful", user=UserResponse.from_view(view))
