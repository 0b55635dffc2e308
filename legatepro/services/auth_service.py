"""Auth service - credential registration and login."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from legatepro.core.security import MIN_PASSWORD_LENGTH, hash_password, verify_password
from legatepro.db.enums import SubscriptionStatus
from legatepro.db.models import User
from legatepro.schemas.auth import RegisterRequest

logger = logging.getLogger(__name__)


class EmailAlreadyRegistered(Exception):
    pass


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalars(select(User).where(User.email == normalize_email(email))).first()


def register_user(db: Session, data: RegisterRequest) -> User:
    """
    Create a credentials account.

    Raises:
        ValueError: Password too short
        EmailAlreadyRegistered: Email taken (including a concurrent insert)
    """
    email = normalize_email(data.email)
    password = data.password.strip()
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if get_user_by_email(db, email):
        raise EmailAlreadyRegistered(email)

    name = data.name or " ".join(p for p in (data.first_name, data.last_name) if p) or None
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=data.first_name,
        last_name=data.last_name,
        name=name,
        subscription_status=SubscriptionStatus.FREE.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise EmailAlreadyRegistered(email)
    db.refresh(user)
    logger.info("User registered", extra={"user_id": str(user.id)})
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    """Return the user when the credentials match an active account."""
    user = get_user_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password.strip(), user.password_hash):
        return None
    return user


def revoke_sessions(db: Session, user: User) -> None:
    """Invalidate every outstanding session token for the user."""
    user.token_version = (user.token_version or 0) + 1
    db.commit()
