"""CLI tools for local administration."""

from uuid import UUID

import click

from growthtrack.core.encryption import rotate_token
from growthtrack.core.security import create_session_token
from growthtrack.db.base import Base
from growthtrack.db.models import CalendarCredential, User
from growthtrack.db.session import SessionLocal, engine


@click.group()
def cli():
    """Growth tracker CLI tools."""
    pass


@cli.command()
def init_db():
    """Create all tables (dev/SQLite only; use Alembic elsewhere)."""
    Base.metadata.create_all(bind=engine)
    click.echo("✅ Tables created")


@cli.command()
@click.option("--email", required=True, help="User email address")
@click.option("--name", required=True, help="Display name")
def create_user(email: str, name: str):
    """
    Create a parent account mirroring an auth-provider identity.

    Example:
        python -m growthtrack.cli create-user --email parent@example.com --name "Parent"
    """
    db = SessionLocal()
    try:
        email = email.strip().lower()
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            click.echo(f"❌ User {email} already exists ({existing.id})")
            return

        user = User(email=email, display_name=name.strip())
        db.add(user)
        db.commit()
        click.echo(f"✅ Created user {user.id}")
    finally:
        db.close()


@cli.command()
@click.option("--user-id", required=True, help="User UUID")
@click.option("--hours", default=None, type=int, help="Token lifetime in hours")
def issue_token(user_id: str, hours: int | None):
    """Mint a bearer session token for a user (dev/testing)."""
    db = SessionLocal()
    try:
        user = db.get(User, UUID(user_id))
        if not user:
            click.echo(f"❌ User {user_id} not found")
            return
        click.echo(create_session_token(user.id, expires_hours=hours))
    finally:
        db.close()


@cli.command()
def rotate_calendar_keys():
    """
    Re-encrypt stored calendar tokens under the first FERNET_KEY.

    Run after prepending a new key; the old key can be removed afterwards.
    """
    db = SessionLocal()
    try:
        credentials = db.query(CalendarCredential).all()
        for credential in credentials:
            credential.access_token_encrypted = rotate_token(credential.access_token_encrypted)
            if credential.refresh_token_encrypted:
                credential.refresh_token_encrypted = rotate_token(
                    credential.refresh_token_encrypted
                )
        db.commit()
        click.echo(f"✅ Re-encrypted {len(credentials)} calendar credential(s)")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
