"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite schema per test
- Users at every estate role (owner, editor, viewer, outsider) plus a free-plan user
- An estate shared with the editor and viewer
- ``client_for(user)``: HTTPX AsyncClient with session cookie and CSRF header
"""
import os
import uuid
from typing import Generator

# Configure before the app (and its engine/limiter) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

from legatepro.core.deps import COOKIE_NAME, get_db
from legatepro.core.security import create_session_token
from legatepro.db.base import Base
from legatepro.db.enums import EstateRole
from legatepro.db.models import Estate, EstateCollaborator, User
from legatepro.db.session import SessionLocal, engine
from legatepro.main import app


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Session on a freshly created schema.

    Tables are dropped afterwards, so app code may commit freely.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    app.dependency_overrides[get_db] = lambda: session
    try:
        yield session
    finally:
        app.dependency_overrides.clear()
        session.close()
        Base.metadata.drop_all(bind=engine)


def make_user(db: Session, label: str, **fields) -> User:
    """Create a user with a unique @example.org address. No password unless given."""
    user = User(
        id=uuid.uuid4(),
        email=f"{label}-{uuid.uuid4().hex[:8]}@example.org",
        name=label.title(),
        **fields,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def owner(db: Session) -> User:
    """Pro-plan estate owner."""
    return make_user(db, "owner", subscription_plan_id="pro", subscription_status="active")


@pytest.fixture(scope="function")
def editor(db: Session) -> User:
    return make_user(db, "editor")


@pytest.fixture(scope="function")
def viewer(db: Session) -> User:
    return make_user(db, "viewer")


@pytest.fixture(scope="function")
def outsider(db: Session) -> User:
    return make_user(db, "outsider")


@pytest.fixture(scope="function")
def free_user(db: Session) -> User:
    return make_user(db, "free")


@pytest.fixture(scope="function")
def estate(db: Session, owner: User, editor: User, viewer: User) -> Estate:
    """Estate owned by ``owner`` with an EDITOR and a VIEWER collaborator."""
    estate = Estate(
        owner_id=owner.id,
        display_name="Estate of Jane Doe",
        decedent_name="Jane Doe",
        court_county="Wayne",
        court_state="MI",
    )
    db.add(estate)
    db.flush()
    db.add_all(
        [
            EstateCollaborator(estate_id=estate.id, user_id=editor.id, role=EstateRole.EDITOR.value),
            EstateCollaborator(estate_id=estate.id, user_id=viewer.id, role=EstateRole.VIEWER.value),
        ]
    )
    db.commit()
    return estate


@pytest.fixture(scope="function")
def other_estate(db: Session, outsider: User) -> Estate:
    """Estate the shared estate's members have no access to."""
    estate = Estate(owner_id=outsider.id, display_name="Estate of John Roe")
    db.add(estate)
    db.commit()
    return estate


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def client_for(db: Session):
    """
    Factory for an authenticated AsyncClient.

    Usage:
        async with client_for(owner) as c:
            await c.get("/api/estates")
    """

    def factory(user: User, token: str | None = None, csrf: bool = True) -> AsyncClient:
        token = token or create_session_token(user.id, user.token_version)
        headers = {"X-Requested-With": "XMLHttpRequest"} if csrf else {}
        return AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={COOKIE_NAME: token},
            headers=headers,
        )

    return factory


@pytest.fixture(scope="function")
async def client(db: Session):
    """Unauthenticated AsyncClient (with CSRF header) for public endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Requested-With": "XMLHttpRequest"},
    ) as c:
        yield c


def estate_url(estate: Estate, path: str = "") -> str:
    return f"/api/estates/{estate.id}{path}"
