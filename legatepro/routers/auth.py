"""Authentication router - credentials sign-up, login and session management."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from legatepro.core.config import settings
from legatepro.core.deps import COOKIE_NAME, get_current_user, get_db, require_csrf_header
from legatepro.core.rate_limit import AUTH_LIMIT, limiter
from legatepro.core.responses import Envelope, ok
from legatepro.core.security import create_session_token
from legatepro.db.models import User
from legatepro.schemas.auth import (
    LoginRequest,
    MeResponse,
    RegisterRequest,
    RegisterResponse,
    UserRead,
)
from legatepro.services import auth_service
from legatepro.services.entitlements import get_entitlements

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=Envelope[RegisterResponse],
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
@limiter.limit(AUTH_LIMIT)
def register(
    request: Request,
    data: RegisterRequest,
    db: Session = Depends(get_db),
):
    """Create a credentials account. Duplicate email is a 409."""
    try:
        user = auth_service.register_user(db, data)
    except auth_service.EmailAlreadyRegistered:
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ok(RegisterResponse(id=user.id, email=user.email))


@router.post(
    "/login",
    response_model=Envelope[UserRead],
    dependencies=[Depends(require_csrf_header)],
)
@limiter.limit(AUTH_LIMIT)
def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Exchange email + password for a session cookie.

    Unknown email and wrong password return the same 401.
    """
    user = auth_service.authenticate(db, data.email, data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_session_token(user.id, user.token_version)
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    logger.info("User logged in", extra={"user_id": str(user.id)})
    return ok(UserRead.model_validate(user))


@router.post("/logout", dependencies=[Depends(require_csrf_header)])
def logout(
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Revoke every session for the user and clear the cookie."""
    auth_service.revoke_sessions(db, user)
    response.delete_cookie(COOKIE_NAME, path="/")
    return ok({"status": "logged_out"})


@router.get("/me", response_model=Envelope[MeResponse])
def get_me(user: User = Depends(get_current_user)):
    """Current user plus plan entitlements; used to bootstrap the client."""
    return ok(
        MeResponse(
            user=UserRead.model_validate(user),
            entitlements=get_entitlements(user).to_dict(),
        )
    )
