# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/ticketdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db [--admin-email admin@example.com --admin-password secret]
#   Create all tables (idempotent) and optionally a first administrator.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and blocked status.
# - python -m flask users create --email a@b.c --name Ann --surname Lee --password secret --role ADMIN
#   Create a user (prompts if options are omitted).
# - python -m flask users block a@b.c / users unblock a@b.c
#   Block or unblock an account; both revoke every session.
# - python -m flask users revoke-sessions a@b.c
#   Logout everywhere for one account.
#
# Permission inspection:
# - python -m flask perms list [--role PROJECT_MANAGER]
#   List permission atoms, optionally only those granted to a role.
#
# Maintenance:
# - python -m flask maintenance cleanup-reset-tokens
#   Delete expired password reset tokens.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import ALL_ROLES, PERMISSION_DEFINITIONS, permissions_for
from .services import credential_service, password_reset_service, user_service
from .validation import ConflictError, ValidationError


def _resolve_user(login):
    user = credential_service.find_by_login_or_email(login)
    if user is None:
        raise click.ClickException(f"User '{login}' not found")
    return user


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@click.option('--admin-email', help='Create an administrator with this email')
@click.option('--admin-password', help='Password for the administrator')
@with_appcontext
def init_db(admin_email, admin_password):
    """Create all tables; optionally bootstrap the first administrator."""
    db.create_all()
    click.echo("PASS Tables created")

    if not admin_email:
        return
    if not admin_password:
        raise click.ClickException("--admin-password is required with --admin-email")
    if credential_service.find_by_login_or_email(admin_email):
        click.echo(f"SKIP Administrator {admin_email} already exists")
        return

    try:
        user = user_service.create_user(
            email=admin_email,
            name="System",
            surname="Administrator",
            password=admin_password,
            role="ADMIN",
        )
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created administrator {user.username} (ID: {user.id})")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address (also the login name)')
@click.option('--name', prompt=True, help='First name')
@click.option('--surname', prompt=True, help='Last name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(ALL_ROLES), prompt=True, help='Role')
@with_appcontext
def create_user_cli(email, name, surname, password, role):
    """Create a new user. Passwords must be 6 characters to 72 bytes."""
    try:
        user = user_service.create_user(
            email=email,
            name=name,
            surname=surname,
            password=password,
            role=role,
        )
    except ConflictError as e:
        raise click.ClickException(str(e))
    except ValidationError as e:
        raise click.ClickException(f"Validation failed: {e}")

    click.echo(f"PASS Created user: {user.username} with role '{user.role}' (ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = user_service.list_users()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<30} {'Name':<25} {'Role':<16} {'Blocked'}")
    click.echo("="*90)

    for user in users:
        full_name = f"{user.name} {user.surname}"
        blocked_str = "Yes" if user.blocked else "No"
        click.echo(f"{user.id:<5} {user.username:<30} {full_name:<25} {user.role:<16} {blocked_str}")

    click.echo("="*90 + "\n")


@users_group.command('block')
@click.argument('login')
@with_appcontext
def block_user_cli(login):
    """Block an account and revoke all of its sessions."""
    user = _resolve_user(login)
    user_service.block_user(user.id)
    click.echo(f"PASS Blocked {user.username}")


@users_group.command('unblock')
@click.argument('login')
@with_appcontext
def unblock_user_cli(login):
    """Unblock an account. Sessions issued before the block stay invalid."""
    user = _resolve_user(login)
    user_service.unblock_user(user.id)
    click.echo(f"PASS Unblocked {user.username}")


@users_group.command('revoke-sessions')
@click.argument('login')
@with_appcontext
def revoke_sessions_cli(login):
    """Invalidate every outstanding session token of an account."""
    user = _resolve_user(login)
    credential_service.increment_token_version(user.id)
    user = db.session.get(User, user.id, populate_existing=True)
    click.echo(f"PASS Revoked sessions of {user.username} (token version now {user.token_version})")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(ALL_ROLES), help='Only atoms granted to this role')
def list_permissions_cli(role):
    """List permission atoms, optionally filtered by role."""
    granted = permissions_for(role) if role else None

    click.echo(f"\n{'='*80}")
    click.echo(f"Permissions for role: {role}" if role else "All permissions")
    click.echo(f"{'='*80}\n")

    click.echo(f"{'Code':<26} {'Name':<30} {'Category'}")
    click.echo("-"*80)

    count = 0
    for code, name, _description, category in PERMISSION_DEFINITIONS:
        if granted is not None and code not in granted:
            continue
        click.echo(f"{code:<26} {name:<30} {category}")
        count += 1

    click.echo(f"\n Total: {count} permissions\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-reset-tokens')
@with_appcontext
def cleanup_reset_tokens_cli():
    """Delete expired password reset tokens."""
    deleted = password_reset_service.cleanup_expired_reset_tokens()
    click.echo(f"PASS Deleted {deleted} expired reset tokens")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(maintenance_group)
