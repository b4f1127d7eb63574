"""
api/routes/auth.py -- Registration, login, and session endpoints.

Routes:
  POST /api/auth/register  -- create account + first session; 201
  POST /api/auth/login     -- password login; new session; 200
  POST /api/auth/logout    -- revoke the presented token (requires auth)
  GET  /api/auth/me        -- current user info (requires auth)

Security:
  POST /login and /register are rate-limited per client address. @limiter.limit
  must sit below @router.post so the router registers the limited wrapper.
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_username() + verify_password().
  Login failure is one generic 401 whether the username exists or not.
  Cache-Control: no-store on every response that carries a token.
  PBKDF2 is CPU-bound, so hashing runs in the threadpool, off the event loop.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.exc import IntegrityError
from starlette.concurrency import run_in_threadpool

from api.body import read_json_body
from api.limiter import limiter
from api.models import AuthResponse, MessageResponse, UserResponse
from auth.dependencies import bearer_token, get_current_user
from auth.models import Identity, User
from auth.sessions import SessionManager
from auth.store import UserStore
from auth.tokens import authenticate_user, hash_password
from core.config import get_settings

logger = logging.getLogger("bizdir.auth")

_settings = get_settings()

_MIN_USERNAME_LENGTH = 3
_MIN_PASSWORD_LENGTH = 8
_NO_STORE = {"Cache-Control": "no-store"}

router = APIRouter()


def _credentials(payload) -> tuple[str, str]:
    """Pull (username, password) out of a JSON body; non-strings read as ""."""
    if not isinstance(payload, dict):
        payload = {}
    username = payload.get("username")
    password = payload.get("password")
    return (
        username.strip() if isinstance(username, str) else "",
        password if isinstance(password, str) else "",
    )


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
@limiter.limit(_settings.register_rate_limit)
async def register(request: Request, response: Response) -> AuthResponse:
    """Create an account and return a session token for it.

    The existence check gives the friendly 409; the UNIQUE constraint catches
    the race where two requests register the same name at once. Either way no
    session is created for the losing request.
    """
    username, password = _credentials(await read_json_body(request))
    if not username:
        raise HTTPException(status_code=400, detail="Username is required")
    if len(username) < _MIN_USERNAME_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Username must be at least {_MIN_USERNAME_LENGTH} characters long",
        )
    if len(password) < _MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {_MIN_PASSWORD_LENGTH} characters long",
        )

    user_store: UserStore = request.app.state.user_store
    sessions: SessionManager = request.app.state.sessions

    if user_store.get_by_username(username) is not None:
        raise HTTPException(status_code=409, detail="This username is already registered")

    password_hash = await run_in_threadpool(hash_password, password)
    try:
        user_id = user_store.create_user(User(username=username, password_hash=password_hash))
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="This username is already registered") from exc

    created = user_store.get_by_id(user_id)
    if created is None:
        raise RuntimeError("User not found after write")

    session = sessions.create(user_id)
    logger.info("Registered user id=%d", user_id)
    response.headers.update(_NO_STORE)
    return AuthResponse.from_session(
        session,
        UserResponse(id=created.id, username=created.username, created_at=created.created_at),
    )


@router.post("/auth/login", response_model=AuthResponse)
@limiter.limit(_settings.login_rate_limit)
async def login(request: Request, response: Response) -> AuthResponse:
    """Verify username/password and issue a new, independent session token.

    Returns the same 401 for an unknown username and a wrong password to avoid
    leaking which usernames exist.
    """
    username, password = _credentials(await read_json_body(request))
    if not username or not password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    user_store: UserStore = request.app.state.user_store
    sessions: SessionManager = request.app.state.sessions

    user = await run_in_threadpool(authenticate_user, user_store, username, password)
    if user is None:
        logger.info("Rejected login attempt")
        raise HTTPException(status_code=401, detail="Invalid username or password", headers=_NO_STORE)

    session = sessions.create(user.id)
    response.headers.update(_NO_STORE)
    return AuthResponse.from_session(
        session,
        UserResponse(id=user.id, username=user.username, created_at=user.created_at),
    )


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(request: Request, current_user: Identity = Depends(get_current_user)) -> MessageResponse:
    """Revoke the token used for this request. The user's other sessions stay valid."""
    sessions: SessionManager = request.app.state.sessions
    sessions.revoke(bearer_token(request))
    return MessageResponse(message="Logged out")


@router.get("/auth/me", response_model=UserResponse)
async def me(current_user: Identity = Depends(get_current_user)) -> UserResponse:
    """Return identity information for the currently authenticated user."""
    return UserResponse.from_identity(current_user)
