"""CLI tools for LegatePro administration."""

import click
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from legatepro.db.session import SessionLocal, engine


@click.group()
def cli():
    """LegatePro CLI tools."""
    pass


@cli.command()
def init_db():
    """
    Create all tables that do not exist yet.

    Example:
        legatepro init-db
    """
    from legatepro.db.base import Base
    import legatepro.db.models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
    click.echo("✓ Database tables created")


@cli.command()
@click.option("--email", required=True, help="Login email")
@click.option("--password", required=True, prompt=True, hide_input=True, help="Password (8+ characters)")
@click.option("--name", default=None, help="Optional display name")
def create_user(email: str, password: str, name: str | None):
    """
    Create a credentials account.

    Example:
        legatepro create-user --email "pr@example.org" --name "Pat Rep"
    """
    from legatepro.schemas.auth import RegisterRequest
    from legatepro.services.auth_service import EmailAlreadyRegistered, register_user

    try:
        data = RegisterRequest(email=email, password=password, name=name)
    except ValidationError as e:
        click.echo(f"❌ Invalid input: {e.errors()[0]['msg']}")
        raise SystemExit(1)

    db = SessionLocal()
    try:
        user = register_user(db, data)
        click.echo(f"✓ Created user: {user.email}")
        click.echo(f"  ID: {user.id}")
    except EmailAlreadyRegistered:
        click.echo(f"❌ User already exists: {email}")
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"❌ {e}")
        raise SystemExit(1)
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        legatepro revoke-sessions --email "pr@example.org"
    """
    from legatepro.services.auth_service import get_user_by_email, revoke_sessions as revoke

    db = SessionLocal()
    try:
        user = get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            raise SystemExit(1)

        old_version = user.token_version
        revoke(db, user)
        click.echo(f"✓ Revoked all sessions for {user.email}")
        click.echo(f"  Token version: {old_version} → {user.token_version}")
    except SQLAlchemyError as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
