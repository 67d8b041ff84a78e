"""CLI tools for portal administration."""

import click
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from portal.core.errors import PortalError, translate_integrity_error
from portal.core.security import hash_password
from portal.db.enums import Role
from portal.db.models import User
from portal.db.session import SessionLocal
from portal.services import notification_service, user_service


@click.group()
def cli():
    """Portal CLI tools."""
    pass


@cli.command()
@click.option("--username", required=True, help="Login username")
@click.option("--email", required=True, help="Email address (used to log in)")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--first-name", default=None)
@click.option("--last-name", default=None)
def create_super_admin(
    username: str,
    email: str,
    password: str,
    first_name: str | None,
    last_name: str | None,
):
    """
    Create the bootstrap super admin account.

    The account is active immediately: there is nobody to approve it yet.

    Example:
        python -m portal.cli create-super-admin --username root --email "admin@example.com"
    """
    db = SessionLocal()
    try:
        user_service.validate_password_strength(password, field="password")

        user = User(
            username=username.strip(),
            email=email.lower(),
            password_hash=hash_password(password),
            role=Role.SUPER_ADMIN.value,
            first_name=first_name,
            last_name=last_name,
            is_active=True,
            is_approved=True,
            pending_approval=False,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise translate_integrity_error(e) from e

        click.echo(f"✓ Created super admin: {user.username}")
        click.echo(f"  ID: {user.id}")
        click.echo(f"  Email: {user.email}")
    except PortalError as e:
        raise click.ClickException(e.message)
    finally:
        db.close()


@cli.command()
@click.option("--days", default=None, type=int, help="Retention window (default: NOTIFICATION_RETENTION_DAYS)")
def purge_notifications(days: int | None):
    """
    Delete notifications older than the retention window.

    Example:
        python -m portal.cli purge-notifications --days 30
    """
    db = SessionLocal()
    try:
        deleted = notification_service.purge_older_than(db, days=days)
        click.echo(f"✓ Purged {deleted} notifications")
    except SQLAlchemyError as e:
        db.rollback()
        raise click.ClickException(f"Purge failed: {e}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m portal.cli revoke-sessions --email "user@example.com"
    """
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if not user:
            raise click.ClickException(f"User not found: {email}")

        old_version = user.token_version
        new_version = user_service.revoke_sessions(db, user)

        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  Token version: {old_version} → {new_version}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
